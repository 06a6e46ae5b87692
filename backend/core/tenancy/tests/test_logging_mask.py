import logging

from django.test import SimpleTestCase

from tenancy.logging import MaskCPFCNPJFilter, mask_cpf_cnpj, mask_secret


class MaskCPFCNPJTests(SimpleTestCase):
    def test_masks_formatted_values(self):
        msg = "cpf=123.456.789-09 cnpj=12.345.678/0001-90"
        masked = mask_cpf_cnpj(msg)
        self.assertNotIn("123.456.789-09", masked)
        self.assertNotIn("12.345.678/0001-90", masked)
        self.assertIn("***CPF***", masked)
        self.assertIn("***CNPJ***", masked)

    def test_masks_bare_digits_but_not_longer_numbers(self):
        masked = mask_cpf_cnpj("tomador 12345678909 chave 35260312345678000190550010000001231000001234")
        self.assertIn("***CPF***", masked)
        self.assertNotIn("12345678909 ", masked)
        self.assertIn("35260312345678000190550010000001231000001234", masked)

    def test_logging_filter_masks_message_and_extra(self):
        record = logging.LogRecord(
            name="fiscal.services",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="fiscal.emit.failed error=%s",
            args=("Destinatario 98.765.432/0001-10 invalido",),
            exc_info=None,
        )
        record.recipient_tax_id = "98765432000110"

        MaskCPFCNPJFilter().filter(record)

        self.assertIn("***CNPJ***", record.msg)
        self.assertNotIn("98.765.432/0001-10", record.msg)
        self.assertEqual(record.args, ())
        self.assertEqual(record.recipient_tax_id, "***CNPJ***")


class MaskSecretTests(SimpleTestCase):
    def test_keeps_prefix_only(self):
        self.assertEqual(mask_secret("abcdefgh"), "abcd***")
        self.assertEqual(mask_secret("abc"), "***")
        self.assertEqual(mask_secret(""), "")
