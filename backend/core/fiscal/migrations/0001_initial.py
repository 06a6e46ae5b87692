# Keep in sync with fiscal/models.py.

import uuid

import django.core.serializers.json
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="FiscalConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("cnpj", models.CharField(max_length=18)),
                ("municipal_registration", models.CharField(blank=True, max_length=30)),
                ("municipality_code", models.CharField(blank=True, help_text="IBGE municipality code of the issuer.", max_length=7)),
                ("uf", models.CharField(max_length=2)),
                ("nfe_enabled", models.BooleanField(default=False)),
                ("nfse_enabled", models.BooleanField(default=False)),
                ("environment", models.CharField(choices=[("sandbox", "Sandbox"), ("production", "Production")], db_index=True, default="sandbox", max_length=20)),
                ("sandbox_token", models.TextField(blank=True)),
                ("production_token", models.TextField(blank=True)),
                ("api_token", models.TextField(blank=True, help_text="Legacy single credential, used when the environment slot is empty.")),
                ("certificate_expires_at", models.DateField(blank=True, null=True)),
                ("nfe_series", models.PositiveIntegerField(default=1)),
                ("nfe_last_number", models.PositiveIntegerField(default=0)),
                ("nfse_last_number", models.PositiveIntegerField(default=0)),
                ("nfse_iss_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ("nfse_service_code", models.CharField(blank=True, max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="fiscal_fiscalconfig_set", to="customers.company")),
            ],
            options={
                "verbose_name": "Fiscal Config",
                "verbose_name_plural": "Fiscal Configs",
                "ordering": ("-updated_at", "id"),
            },
        ),
        migrations.AddConstraint(
            model_name="fiscalconfig",
            constraint=models.UniqueConstraint(fields=("company",), name="uq_fiscal_config_per_tenant"),
        ),
        migrations.CreateModel(
            name="FiscalDocument",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("kind", models.CharField(choices=[("nfe", "NF-e (goods)"), ("nfse", "NFS-e (services)")], db_index=True, max_length=10)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("processing", "Processing"), ("authorized", "Authorized"), ("rejected", "Rejected"), ("cancelled", "Cancelled"), ("error", "Error")], db_index=True, default="draft", max_length=20)),
                ("operation_nature", models.CharField(blank=True, max_length=120)),
                ("purpose", models.CharField(blank=True, max_length=30)),
                ("presence_indicator", models.CharField(blank=True, max_length=30)),
                ("additional_info", models.TextField(blank=True)),
                ("recipient_name", models.CharField(blank=True, max_length=255)),
                ("recipient_tax_id", models.CharField(blank=True, max_length=20)),
                ("recipient_person_type", models.CharField(blank=True, choices=[("individual", "Pessoa fisica"), ("company", "Pessoa juridica")], max_length=20)),
                ("recipient_state_registration", models.CharField(blank=True, max_length=20)),
                ("recipient_email", models.EmailField(blank=True, max_length=254)),
                ("recipient_phone", models.CharField(blank=True, max_length=30)),
                ("recipient_street", models.CharField(blank=True, max_length=255)),
                ("recipient_number", models.CharField(blank=True, max_length=20)),
                ("recipient_complement", models.CharField(blank=True, max_length=120)),
                ("recipient_district", models.CharField(blank=True, max_length=120)),
                ("recipient_municipality", models.CharField(blank=True, max_length=120)),
                ("recipient_municipality_code", models.CharField(blank=True, max_length=7)),
                ("recipient_uf", models.CharField(blank=True, max_length=2)),
                ("recipient_postal_code", models.CharField(blank=True, max_length=10)),
                ("iss_rate", models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ("iss_withheld", models.BooleanField(default=False)),
                ("service_code", models.CharField(blank=True, max_length=20)),
                ("service_description", models.TextField(blank=True)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=14, validators=[django.core.validators.MinValueValidator(0)])),
                ("gateway_reference", models.CharField(blank=True, db_index=True, max_length=80)),
                ("number", models.PositiveIntegerField(blank=True, null=True)),
                ("series", models.PositiveIntegerField(blank=True, null=True)),
                ("access_key", models.CharField(blank=True, max_length=50)),
                ("protocol", models.CharField(blank=True, max_length=50)),
                ("gateway_status", models.CharField(blank=True, max_length=40)),
                ("sefaz_status", models.CharField(blank=True, max_length=10)),
                ("gateway_message", models.TextField(blank=True)),
                ("xml_url", models.CharField(blank=True, max_length=500)),
                ("danfe_url", models.CharField(blank=True, max_length=500)),
                ("pdf_url", models.CharField(blank=True, max_length=500)),
                ("issued_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="fiscal_fiscaldocument_set", to="customers.company")),
            ],
            options={
                "verbose_name": "Fiscal Document",
                "verbose_name_plural": "Fiscal Documents",
                "ordering": ("-created_at", "id"),
            },
        ),
        migrations.AddIndex(
            model_name="fiscaldocument",
            index=models.Index(fields=["company", "kind", "status"], name="idx_fiscal_doc_kind_status"),
        ),
        migrations.AddIndex(
            model_name="fiscaldocument",
            index=models.Index(fields=["company", "created_at"], name="idx_fiscal_doc_created"),
        ),
        migrations.CreateModel(
            name="FiscalDocumentItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sequence", models.PositiveIntegerField()),
                ("product_code", models.CharField(blank=True, max_length=60)),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=4, max_digits=14)),
                ("total", models.DecimalField(decimal_places=2, max_digits=14)),
                ("unit", models.CharField(blank=True, max_length=6)),
                ("ncm", models.CharField(blank=True, max_length=8)),
                ("cest", models.CharField(blank=True, max_length=7)),
                ("cfop", models.CharField(blank=True, max_length=4)),
                ("icms_origin", models.CharField(blank=True, max_length=40)),
                ("icms_cst", models.CharField(blank=True, max_length=3)),
                ("pis_cst", models.CharField(blank=True, max_length=2)),
                ("cofins_cst", models.CharField(blank=True, max_length=2)),
                ("document", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="fiscal.fiscaldocument")),
            ],
            options={
                "verbose_name": "Fiscal Document Item",
                "verbose_name_plural": "Fiscal Document Items",
                "ordering": ("document", "sequence"),
            },
        ),
        migrations.AddConstraint(
            model_name="fiscaldocumentitem",
            constraint=models.UniqueConstraint(fields=("document", "sequence"), name="uq_fiscal_item_sequence_per_document"),
        ),
        migrations.CreateModel(
            name="FiscalEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("kind", models.CharField(choices=[("emission", "Emission"), ("error", "Error")], max_length=20)),
                ("gateway_status", models.CharField(blank=True, max_length=40)),
                ("message", models.TextField(blank=True)),
                ("payload", models.JSONField(blank=True, default=dict, encoder=django.core.serializers.json.DjangoJSONEncoder)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="fiscal_fiscalevent_set", to="customers.company")),
                ("document", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="events", to="fiscal.fiscaldocument")),
            ],
            options={
                "verbose_name": "Fiscal Event",
                "verbose_name_plural": "Fiscal Events",
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.AddIndex(
            model_name="fiscalevent",
            index=models.Index(fields=["company", "document", "created_at"], name="idx_fiscal_event_doc"),
        ),
    ]
