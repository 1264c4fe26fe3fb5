"""Role permission sets."""

from app.db.enums.auth import Role

# Roles that can change organisation settings (VAT registration, rate, number)
ROLES_CAN_MANAGE_SETTINGS = {Role.ADMIN}
