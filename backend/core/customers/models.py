import hashlib
import uuid

from django.db import models


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256((raw_key or "").encode("utf-8")).hexdigest()


class Company(models.Model):
    """Tenant organization. Every fiscal record belongs to exactly one company."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    tenant_code = models.SlugField(
        max_length=63,
        unique=True,
        help_text="Short human-friendly tenant identifier.",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)
        verbose_name = "Company"
        verbose_name_plural = "Companies"

    def __str__(self):
        return f"{self.name} ({self.tenant_code})"


class ApiKey(models.Model):
    """Hashed API key granting access to a single company.

    Only the SHA-256 digest of the key is stored.
    """

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        related_name="api_keys",
    )
    label = models.CharField(max_length=120, blank=True)
    key_hash = models.CharField(max_length=64, unique=True)
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at", "id")
        verbose_name = "API Key"
        verbose_name_plural = "API Keys"

    def __str__(self):  # pragma: no cover
        status = "active" if self.active else "inactive"
        return f"{self.company_id} - {self.label or self.key_hash[:8]} ({status})"

    def set_key(self, raw_key: str) -> None:
        self.key_hash = hash_api_key(raw_key)
