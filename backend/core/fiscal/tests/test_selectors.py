from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from fiscal.exceptions import FiscalNotFoundError, FiscalTenantMissing, FiscalValidationError
from fiscal.models import DocumentKind, FiscalDocument, FiscalEvent
from fiscal.selectors import (
    find_stuck_processing_documents,
    get_fiscal_document,
    list_fiscal_documents,
    list_fiscal_events,
)
from fiscal.serializers import FiscalDocumentDetailSerializer, FiscalEventSerializer
from fiscal.tests.factories import add_item, make_company, make_document
from tenancy.context import company_context, reset_current_company, set_current_company


class FiscalSelectorTests(TestCase):
    def setUp(self):
        self.company = make_company("acme")
        self.other = make_company("other")
        self._tenant_token = set_current_company(self.company)

        now = timezone.now()
        self.old_nfe = make_document(self.company)
        self.nfse = make_document(self.company, kind=DocumentKind.NFSE, recipient_tax_id="123.456.789-09")
        self.new_nfe = make_document(self.company, status=FiscalDocument.Status.AUTHORIZED)
        for offset, document in enumerate((self.old_nfe, self.nfse, self.new_nfe)):
            FiscalDocument.all_objects.filter(id=document.id).update(
                created_at=now - timedelta(minutes=10 - offset)
            )
        with company_context(self.other):
            self.foreign = make_document(self.other)

    def tearDown(self):
        reset_current_company(self._tenant_token)

    def test_lists_newest_first_for_current_tenant(self):
        rows, total = list_fiscal_documents()
        self.assertEqual(total, 3)
        self.assertEqual([row.id for row in rows], [self.new_nfe.id, self.nfse.id, self.old_nfe.id])

    def test_filters(self):
        rows, total = list_fiscal_documents(kind=DocumentKind.NFE, status=FiscalDocument.Status.DRAFT)
        self.assertEqual((total, [row.id for row in rows]), (1, [self.old_nfe.id]))

        rows, total = list_fiscal_documents(recipient_tax_id="123.456.789-09")
        self.assertEqual((total, [row.id for row in rows]), (1, [self.nfse.id]))

    def test_pagination(self):
        rows, total = list_fiscal_documents(limit=1, offset=1)
        self.assertEqual(total, 3)
        self.assertEqual([row.id for row in rows], [self.nfse.id])

    def test_rejects_bad_page(self):
        with self.assertRaises(FiscalValidationError):
            list_fiscal_documents(limit=0)
        with self.assertRaises(FiscalValidationError):
            list_fiscal_documents(limit=101)
        with self.assertRaises(FiscalValidationError):
            list_fiscal_documents(offset=-1)

    def test_requires_tenant_context(self):
        with company_context(None):
            with self.assertRaises(FiscalTenantMissing):
                list_fiscal_documents()

    def test_get_document_with_items(self):
        add_item(self.old_nfe, sequence=2, description="Segundo")
        add_item(self.old_nfe, sequence=1, description="Primeiro")

        document, items = get_fiscal_document(self.old_nfe.id)

        self.assertEqual(document.id, self.old_nfe.id)
        self.assertEqual([item.description for item in items], ["Primeiro", "Segundo"])
        data = FiscalDocumentDetailSerializer(document).data
        self.assertEqual(len(data["items"]), 2)

    def test_get_other_tenant_document_is_not_found(self):
        with self.assertRaises(FiscalNotFoundError):
            get_fiscal_document(self.foreign.id)

    def test_list_events(self):
        FiscalEvent.all_objects.create(
            company=self.company,
            document=self.new_nfe,
            kind=FiscalEvent.Kind.EMISSION,
            gateway_status="autorizado",
            message="ok",
            payload={"status": "autorizado"},
        )

        events = list_fiscal_events(self.new_nfe.id)

        self.assertEqual(len(events), 1)
        data = FiscalEventSerializer(events[0]).data
        self.assertEqual(data["payload"], {"status": "autorizado"})


class StuckProcessingDocumentsTests(TestCase):
    def setUp(self):
        self.company = make_company("acme")
        self.other = make_company("other")
        self.stuck = make_document(self.company, status=FiscalDocument.Status.PROCESSING)
        self.stuck_other = make_document(self.other, status=FiscalDocument.Status.PROCESSING)
        self.recent = make_document(self.company, status=FiscalDocument.Status.PROCESSING)
        self.draft = make_document(self.company)

        old = timezone.now() - timedelta(hours=2)
        FiscalDocument.all_objects.filter(
            id__in=[self.stuck.id, self.stuck_other.id, self.draft.id]
        ).update(updated_at=old)

    def test_finds_documents_of_every_tenant(self):
        documents = find_stuck_processing_documents(older_than_minutes=15)
        self.assertEqual({document.id for document in documents}, {self.stuck.id, self.stuck_other.id})

    def test_report_command(self):
        out = StringIO()

        call_command("report_stuck_fiscal_documents", "--minutes", "30", stdout=out)

        output = out.getvalue()
        self.assertIn(str(self.stuck.id), output)
        self.assertIn(str(self.stuck_other.id), output)
        self.assertNotIn(str(self.recent.id), output)
        self.assertIn("stuck=2", output)
        self.stuck.refresh_from_db()
        self.assertEqual(self.stuck.status, FiscalDocument.Status.PROCESSING)
