import django_fsm
import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Affiliate",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        help_text="Referral code", max_length=64, unique=True
                    ),
                ),
                (
                    "tier",
                    models.CharField(
                        choices=[
                            ("starter", "Starter"),
                            ("pro", "Pro"),
                            ("power", "Power"),
                        ],
                        default="starter",
                        help_text="Commission tier",
                        max_length=20,
                    ),
                ),
            ],
            options={
                "verbose_name": "Affiliate",
                "verbose_name_plural": "Affiliates",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="AffiliateAttribution",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "referred_user_id",
                    models.CharField(
                        db_index=True,
                        help_text="User who signed up through the referral",
                        max_length=255,
                    ),
                ),
                (
                    "affiliate_code",
                    models.CharField(
                        help_text="Referral code the user signed up with",
                        max_length=64,
                    ),
                ),
            ],
            options={
                "verbose_name": "Affiliate Attribution",
                "verbose_name_plural": "Affiliate Attributions",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["referred_user_id", "created_at"],
                        name="attribution_user_created_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AffiliateCommission",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "affiliate_code",
                    models.CharField(
                        db_index=True,
                        help_text="Affiliate code credited with the commission",
                        max_length=64,
                    ),
                ),
                (
                    "referred_user_id",
                    models.CharField(
                        help_text="User whose purchase produced the commission",
                        max_length=255,
                    ),
                ),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Commission amount in smallest currency unit"
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("earned", "Earned")],
                        default="earned",
                        help_text="Commission status",
                        max_length=20,
                    ),
                ),
                (
                    "session_id",
                    models.CharField(
                        help_text="Stripe Checkout Session ID the commission was earned on",
                        max_length=255,
                        unique=True,
                    ),
                ),
            ],
            options={
                "verbose_name": "Affiliate Commission",
                "verbose_name_plural": "Affiliate Commissions",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PaymentRecord",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "user_id",
                    models.CharField(
                        db_index=True,
                        help_text="User who completed the purchase",
                        max_length=255,
                    ),
                ),
                (
                    "session_id",
                    models.CharField(
                        help_text="Stripe Checkout Session ID (cs_xxx)",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount charged in smallest currency unit (e.g., cents)",
                    ),
                ),
                (
                    "credits_granted",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Credits granted to the user's wallet for this session",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("paid", "Paid")],
                        default="paid",
                        help_text="Payment status",
                        max_length=20,
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment Record",
                "verbose_name_plural": "Payment Records",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PayoutRequest",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "reviewer_id",
                    models.CharField(
                        db_index=True, help_text="Reviewer to pay", max_length=255
                    ),
                ),
                (
                    "amount_cents",
                    models.PositiveBigIntegerField(
                        help_text="Payout amount in smallest currency unit (e.g., cents)"
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="usd",
                        help_text="ISO 4217 currency code (lowercase)",
                        max_length=3,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("requested", "Requested"),
                            ("paid", "Paid"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="requested",
                        help_text="Current status of the payout request",
                        max_length=50,
                        protected=True,
                    ),
                ),
                (
                    "transfer_id",
                    models.CharField(
                        blank=True,
                        help_text="Stripe Transfer ID (tr_xxx)",
                        max_length=255,
                        null=True,
                        unique=True,
                    ),
                ),
                (
                    "reserved_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the payout amount was reserved from the available balance",
                        null=True,
                    ),
                ),
                (
                    "paid_at",
                    models.DateTimeField(
                        blank=True, help_text="When payout was completed", null=True
                    ),
                ),
                (
                    "rejected_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When payout request was rejected",
                        null=True,
                    ),
                ),
                (
                    "rejection_reason",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Reason given when the request was rejected",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payout Request",
                "verbose_name_plural": "Payout Requests",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["reviewer_id", "status"],
                        name="payout_req_reviewer_status_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("amount_cents__gt", 0)),
                        name="payout_request_amount_positive",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ReviewerBalance",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "version",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Version for optimistic locking - incremented on each save",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "reviewer_id",
                    models.CharField(
                        help_text="Reviewer this balance belongs to",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "available_cents",
                    models.PositiveBigIntegerField(
                        default=0, help_text="Earned balance available for payout"
                    ),
                ),
                (
                    "paid_cents",
                    models.PositiveBigIntegerField(
                        default=0, help_text="Total amount paid out"
                    ),
                ),
            ],
            options={
                "verbose_name": "Reviewer Balance",
                "verbose_name_plural": "Reviewer Balances",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("available_cents__gte", 0)),
                        name="reviewer_balance_available_non_negative",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("paid_cents__gte", 0)),
                        name="reviewer_balance_paid_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReviewerPayoutAccount",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "reviewer_id",
                    models.CharField(
                        help_text="Reviewer this payout account belongs to",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "connect_account_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Stripe Account ID (acct_xxx)",
                        max_length=255,
                    ),
                ),
                (
                    "onboarding_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("in_progress", "In Progress"),
                            ("complete", "Complete"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current Stripe Connect onboarding status",
                        max_length=20,
                    ),
                ),
                (
                    "payouts_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled payouts for this account",
                    ),
                ),
                (
                    "charges_enabled",
                    models.BooleanField(
                        default=False,
                        help_text="Whether Stripe has enabled charges for this account",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reviewer Payout Account",
                "verbose_name_plural": "Reviewer Payout Accounts",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Wallet",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "user_id",
                    models.CharField(
                        help_text="Wallet owner", max_length=255, unique=True
                    ),
                ),
                (
                    "credits",
                    models.PositiveIntegerField(
                        default=0, help_text="Current credit balance"
                    ),
                ),
            ],
            options={
                "verbose_name": "Wallet",
                "verbose_name_plural": "Wallets",
                "ordering": ["-created_at"],
            },
        ),
    ]
