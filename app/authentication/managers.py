from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Email-keyed user creation with a marketplace role.

    Roles default to buyer; create_seller applies the platform commission
    rate unless one is given, and superusers are marketplace admins.
    """

    def _create(self, email, password, **fields):
        if not email:
            raise ValueError("Users need an email address")

        user = self.model(email=self.normalize_email(email), **fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **fields):
        fields.setdefault("is_staff", False)
        fields.setdefault("is_superuser", False)
        return self._create(email, password, **fields)

    def create_seller(self, email, password=None, commission_rate=None, **fields):
        fields["role"] = "seller"
        if commission_rate is not None:
            fields["commission_rate"] = commission_rate
        return self.create_user(email, password, **fields)

    def create_superuser(self, email, password=None, **fields):
        fields.setdefault("is_staff", True)
        fields.setdefault("is_superuser", True)
        fields.setdefault("role", "admin")
        if not (fields["is_staff"] and fields["is_superuser"]):
            raise ValueError("Superusers must be staff with is_superuser=True")
        return self._create(email, password, **fields)
