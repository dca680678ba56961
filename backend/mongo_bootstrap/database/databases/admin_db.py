"""
Admin database configuration.
Holds the administrative bootstrap user.
"""
from mongo_bootstrap.models.specs import PasswordRef, RoleGrant, UserSpec

DB_NAME = "admin"

ADMIN_USER = "n8n_admin"
PASSWORD_ENV = "MONGO_INITDB_ROOT_PASSWORD"

ADMIN_ROLES = [
    ("userAdminAnyDatabase", DB_NAME),
    ("readWriteAnyDatabase", DB_NAME),
    ("dbAdminAnyDatabase", DB_NAME),
]


def user_specs() -> list[UserSpec]:
    """The administrative user, created in the admin database."""
    return [
        UserSpec(
            name=ADMIN_USER,
            database=DB_NAME,
            password=PasswordRef(env=PASSWORD_ENV, allow_insecure_default=True),
            roles=tuple(RoleGrant(role=role, db=db) for role, db in ADMIN_ROLES),
        )
    ]
