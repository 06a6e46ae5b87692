from django.db import models

from tenancy.context import get_current_company


class TenantQuerySet(models.QuerySet):
    def for_company(self, company):
        company_id = getattr(company, "pk", company)
        return self.filter(company_id=company_id)


class TenantManager(models.Manager.from_queryset(TenantQuerySet)):
    """Default manager that only ever sees rows of the current company.

    Outside a tenant context it returns an empty queryset instead of leaking
    every tenant's rows. Use `all_objects` for explicit cross-tenant access.
    """

    def get_queryset(self):
        queryset = super().get_queryset()
        company = get_current_company()
        if company is None:
            return queryset.none()
        return queryset.filter(company=company)
