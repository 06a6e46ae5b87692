from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from customers.models import Company
from fiscal.models import DocumentKind, FiscalDocument
from tenancy.context import company_context, get_current_company


class TenantScopeTests(TestCase):
    def setUp(self):
        self.company = Company.objects.create(name="Empresa A", tenant_code="acme")
        self.other = Company.objects.create(name="Empresa B", tenant_code="beta")

    def _document(self, **overrides):
        data = {"kind": DocumentKind.NFE, "total_amount": Decimal("10.00")}
        data.update(overrides)
        return FiscalDocument(**data)

    def test_company_is_taken_from_context(self):
        with company_context(self.company):
            document = self._document()
            document.save()
        self.assertEqual(document.company_id, self.company.id)

    def test_cross_tenant_write_is_blocked(self):
        with company_context(self.company):
            with self.assertRaises(ValidationError):
                self._document(company=self.other).save()

    def test_default_manager_only_sees_current_company(self):
        with company_context(self.company):
            mine = self._document()
            mine.save()
        with company_context(self.other):
            self._document().save()

        with company_context(self.company):
            self.assertEqual(list(FiscalDocument.objects.values_list("id", flat=True)), [mine.id])
        self.assertEqual(FiscalDocument.objects.count(), 0)
        self.assertEqual(FiscalDocument.all_objects.for_company(self.other).count(), 1)

    def test_context_is_restored(self):
        with company_context(self.company):
            self.assertEqual(get_current_company(), self.company)
        self.assertIsNone(get_current_company())
