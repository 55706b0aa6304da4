"""User model for the ERP staff accounts.

Extends Django's `AbstractUser` with a unique email and the business role
used for authorization gates and audit fields (`created_by`, `approved_by`).
"""

from common.choices import Role
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff user with a unique email and a business role.

    Fields:
    - email: unique at the database level (normalized to lowercase).
    - role: one of admin, accounts, sales, warehouse, manager.
    - full_name: display name used on documents and activity feeds.
    """

    ROLE_CHOICES = Role.choices

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=ROLE_CHOICES, default=Role.SALES, db_index=True)
    full_name = models.CharField(max_length=150, blank=True)

    def save(self, *args, **kwargs):
        """Normalize the email so uniqueness checks are reliable."""
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)

    @property
    def display_name(self) -> str:
        return self.full_name or self.get_full_name() or self.username
