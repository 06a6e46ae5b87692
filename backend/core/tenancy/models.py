import logging

from django.core.exceptions import ValidationError
from django.db import models

from tenancy.context import get_current_company
from tenancy.managers import TenantManager, TenantQuerySet

logger = logging.getLogger(__name__)


class BaseTenantModel(models.Model):
    """Row owned by exactly one company.

    `objects` only sees rows of the current tenant; `all_objects` is the
    explicit cross-tenant entry point and must be narrowed with
    `for_company()` by callers that act on behalf of a tenant.
    """

    company = models.ForeignKey(
        "customers.Company",
        on_delete=models.PROTECT,
        related_name="%(app_label)s_%(class)s_set",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TenantManager()
    all_objects = TenantQuerySet.as_manager()

    class Meta:
        abstract = True

    def _check_tenant(self, action: str) -> None:
        current_company = get_current_company()

        if self.company_id is None and current_company is not None:
            self.company = current_company

        if self.company_id is None:
            raise ValidationError("company is required.")

        if current_company is not None and self.company_id != current_company.id:
            logger.warning(
                "tenancy.cross_tenant_blocked action=%s model=%s company_id=%s current_company_id=%s",
                action,
                self._meta.label,
                self.company_id,
                current_company.id,
            )
            raise ValidationError(
                "Cross-tenant write blocked: resource company does not match current tenant."
            )

    def save(self, *args, **kwargs):
        self._check_tenant("save")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._check_tenant("delete")
        return super().delete(*args, **kwargs)
