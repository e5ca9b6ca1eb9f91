"""Users app package.

Defines the custom user model with reservation roles and the regions that
first-tier approvers are assigned to. Use ``apps.users.models.CustomUser``
as the AUTH_USER_MODEL throughout the project.
"""
