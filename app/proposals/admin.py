from django.contrib import admin

from .models import ClientContact, Proposal, ProposalLog


class ClientContactInline(admin.StackedInline):
    model = ClientContact
    extra = 0


class ProposalLogInline(admin.TabularInline):
    model = ProposalLog
    extra = 0
    readonly_fields = ("action", "message", "created_by", "created_at")


@admin.register(Proposal)
class ProposalAdmin(admin.ModelAdmin):
    list_display = (
        "client_name",
        "company",
        "process_number",
        "organization_name",
        "receiver_type",
        "status",
        "proposal_value",
        "created_at",
    )
    list_filter = ("status", "receiver_type", "company")
    search_fields = ("client_name", "process_number", "organization_name", "id")
    ordering = ("-created_at",)
    inlines = [ClientContactInline, ProposalLogInline]


@admin.register(ProposalLog)
class ProposalLogAdmin(admin.ModelAdmin):
    list_display = ("proposal", "action", "created_by", "created_at")
    list_filter = ("action",)
    search_fields = ("proposal__id", "message")
