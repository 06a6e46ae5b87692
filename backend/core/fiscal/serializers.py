from __future__ import annotations

from rest_framework import serializers

from fiscal.models import FiscalDocument, FiscalDocumentItem, FiscalEvent


class FiscalDocumentItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = FiscalDocumentItem
        fields = (
            "id",
            "sequence",
            "product_code",
            "description",
            "quantity",
            "unit_price",
            "total",
            "unit",
            "ncm",
            "cest",
            "cfop",
            "icms_origin",
            "icms_cst",
            "pis_cst",
            "cofins_cst",
        )
        read_only_fields = fields


class FiscalDocumentSerializer(serializers.ModelSerializer):
    class Meta:
        model = FiscalDocument
        fields = (
            "id",
            "kind",
            "status",
            "recipient_name",
            "recipient_tax_id",
            "recipient_uf",
            "recipient_municipality",
            "total_amount",
            "gateway_reference",
            "number",
            "series",
            "access_key",
            "protocol",
            "gateway_status",
            "sefaz_status",
            "gateway_message",
            "xml_url",
            "danfe_url",
            "pdf_url",
            "issued_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class FiscalDocumentDetailSerializer(FiscalDocumentSerializer):
    items = FiscalDocumentItemSerializer(many=True, read_only=True)

    class Meta(FiscalDocumentSerializer.Meta):
        fields = FiscalDocumentSerializer.Meta.fields + ("items",)
        read_only_fields = fields


class FiscalEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = FiscalEvent
        fields = ("id", "document", "kind", "gateway_status", "message", "payload", "created_at")
        read_only_fields = fields

