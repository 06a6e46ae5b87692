from __future__ import annotations

import uuid

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from tenancy.models import BaseTenantModel


class DocumentKind(models.TextChoices):
    NFE = "nfe", "NF-e (goods)"
    NFSE = "nfse", "NFS-e (services)"


class FiscalConfig(BaseTenantModel):
    """Per-tenant fiscal configuration.

    Gateway credentials are stored encrypted (see `fiscal.crypto`). The
    configured `environment` decides which credential slot is authoritative.
    """

    class Environment(models.TextChoices):
        SANDBOX = "sandbox", "Sandbox"
        PRODUCTION = "production", "Production"

    cnpj = models.CharField(max_length=18)
    municipal_registration = models.CharField(max_length=30, blank=True)
    municipality_code = models.CharField(
        max_length=7,
        blank=True,
        help_text="IBGE municipality code of the issuer.",
    )
    uf = models.CharField(max_length=2)

    nfe_enabled = models.BooleanField(default=False)
    nfse_enabled = models.BooleanField(default=False)
    environment = models.CharField(
        max_length=20,
        choices=Environment.choices,
        default=Environment.SANDBOX,
        db_index=True,
    )

    sandbox_token = models.TextField(blank=True)
    production_token = models.TextField(blank=True)
    api_token = models.TextField(
        blank=True,
        help_text="Legacy single credential, used when the environment slot is empty.",
    )

    certificate_expires_at = models.DateField(null=True, blank=True)

    nfe_series = models.PositiveIntegerField(default=1)
    nfe_last_number = models.PositiveIntegerField(default=0)
    nfse_last_number = models.PositiveIntegerField(default=0)

    nfse_iss_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    nfse_service_code = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ("-updated_at", "id")
        verbose_name = "Fiscal Config"
        verbose_name_plural = "Fiscal Configs"
        constraints = [
            models.UniqueConstraint(
                fields=("company",),
                name="uq_fiscal_config_per_tenant",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.company_id} ({self.environment})"

    def is_enabled_for(self, kind: str) -> bool:
        if kind == DocumentKind.NFE:
            return bool(self.nfe_enabled)
        if kind == DocumentKind.NFSE:
            return bool(self.nfse_enabled)
        return False

    @staticmethod
    def last_number_field(kind: str) -> str:
        return "nfe_last_number" if kind == DocumentKind.NFE else "nfse_last_number"


class FiscalDocument(BaseTenantModel):
    """Goods (NF-e) or service (NFS-e) invoice emitted through the gateway.

    Drafts are created elsewhere; the emission workflow only moves `status`
    forward and writes back what the gateway returned.
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        PROCESSING = "processing", "Processing"
        AUTHORIZED = "authorized", "Authorized"
        REJECTED = "rejected", "Rejected"
        CANCELLED = "cancelled", "Cancelled"
        ERROR = "error", "Error"

    class PersonType(models.TextChoices):
        INDIVIDUAL = "individual", "Pessoa fisica"
        COMPANY = "company", "Pessoa juridica"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kind = models.CharField(max_length=10, choices=DocumentKind.choices, db_index=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )

    operation_nature = models.CharField(max_length=120, blank=True)
    purpose = models.CharField(max_length=30, blank=True)
    presence_indicator = models.CharField(max_length=30, blank=True)
    additional_info = models.TextField(blank=True)

    recipient_name = models.CharField(max_length=255, blank=True)
    recipient_tax_id = models.CharField(max_length=20, blank=True)
    recipient_person_type = models.CharField(
        max_length=20,
        choices=PersonType.choices,
        blank=True,
    )
    recipient_state_registration = models.CharField(max_length=20, blank=True)
    recipient_email = models.EmailField(blank=True)
    recipient_phone = models.CharField(max_length=30, blank=True)
    recipient_street = models.CharField(max_length=255, blank=True)
    recipient_number = models.CharField(max_length=20, blank=True)
    recipient_complement = models.CharField(max_length=120, blank=True)
    recipient_district = models.CharField(max_length=120, blank=True)
    recipient_municipality = models.CharField(max_length=120, blank=True)
    recipient_municipality_code = models.CharField(max_length=7, blank=True)
    recipient_uf = models.CharField(max_length=2, blank=True)
    recipient_postal_code = models.CharField(max_length=10, blank=True)

    iss_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    iss_withheld = models.BooleanField(default=False)
    service_code = models.CharField(max_length=20, blank=True)
    service_description = models.TextField(blank=True)

    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )

    gateway_reference = models.CharField(max_length=80, blank=True, db_index=True)
    number = models.PositiveIntegerField(null=True, blank=True)
    series = models.PositiveIntegerField(null=True, blank=True)
    access_key = models.CharField(max_length=50, blank=True)
    protocol = models.CharField(max_length=50, blank=True)
    gateway_status = models.CharField(max_length=40, blank=True)
    sefaz_status = models.CharField(max_length=10, blank=True)
    gateway_message = models.TextField(blank=True)
    xml_url = models.CharField(max_length=500, blank=True)
    danfe_url = models.CharField(max_length=500, blank=True)
    pdf_url = models.CharField(max_length=500, blank=True)
    issued_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ("-created_at", "id")
        verbose_name = "Fiscal Document"
        verbose_name_plural = "Fiscal Documents"
        indexes = [
            models.Index(fields=("company", "kind", "status"), name="idx_fiscal_doc_kind_status"),
            models.Index(fields=("company", "created_at"), name="idx_fiscal_doc_created"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        label = f"{self.series}-{self.number}" if self.number else str(self.id)
        return f"FiscalDocument {self.kind} {label} [{self.status}]"


class FiscalDocumentItem(models.Model):
    """Line item of a fiscal document, ordered by `sequence` (1-based)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    document = models.ForeignKey(
        FiscalDocument,
        related_name="items",
        on_delete=models.CASCADE,
    )
    sequence = models.PositiveIntegerField()
    product_code = models.CharField(max_length=60, blank=True)
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=14, decimal_places=4)
    unit_price = models.DecimalField(max_digits=14, decimal_places=4)
    total = models.DecimalField(max_digits=14, decimal_places=2)
    unit = models.CharField(max_length=6, blank=True)
    ncm = models.CharField(max_length=8, blank=True)
    cest = models.CharField(max_length=7, blank=True)
    cfop = models.CharField(max_length=4, blank=True)
    icms_origin = models.CharField(max_length=40, blank=True)
    icms_cst = models.CharField(max_length=3, blank=True)
    pis_cst = models.CharField(max_length=2, blank=True)
    cofins_cst = models.CharField(max_length=2, blank=True)

    class Meta:
        ordering = ("document", "sequence")
        verbose_name = "Fiscal Document Item"
        verbose_name_plural = "Fiscal Document Items"
        constraints = [
            models.UniqueConstraint(
                fields=("document", "sequence"),
                name="uq_fiscal_item_sequence_per_document",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"#{self.sequence} {self.description}"


class FiscalEvent(BaseTenantModel):
    """Append-only audit record, one per emission attempt."""

    class Kind(models.TextChoices):
        EMISSION = "emission", "Emission"
        ERROR = "error", "Error"

    document = models.ForeignKey(
        FiscalDocument,
        related_name="events",
        on_delete=models.PROTECT,
    )
    kind = models.CharField(max_length=20, choices=Kind.choices)
    gateway_status = models.CharField(max_length=40, blank=True)
    message = models.TextField(blank=True)
    payload = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ("-created_at", "-id")
        verbose_name = "Fiscal Event"
        verbose_name_plural = "Fiscal Events"
        indexes = [
            models.Index(fields=("company", "document", "created_at"), name="idx_fiscal_event_doc"),
        ]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.created_at:%Y-%m-%d %H:%M:%S} {self.kind} [{self.gateway_status}]"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Fiscal events are immutable; updates are not allowed.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Fiscal events are immutable; deletes are not allowed.")
