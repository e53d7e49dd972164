from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("account_code", models.CharField(max_length=64)),
                ("name", models.CharField(max_length=200)),
                ("account_type", models.CharField(choices=[("customer", "Customer"), ("supplier", "Supplier"), ("sales_rep", "Sales Rep"), ("premium_product", "Premium Product"), ("standard_product", "Standard Product"), ("bank", "Bank"), ("expense", "Expense"), ("income", "Income"), ("asset", "Asset"), ("liability", "Liability"), ("equity", "Equity")], default="customer", max_length=20)),
                ("credit_period_days", models.PositiveIntegerField(default=0)),
                ("credit_limit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("address", models.TextField(blank=True, default="")),
                ("phone", models.CharField(blank=True, default="", max_length=40)),
                ("bank_details", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["account_code"], name="ledger_acct_code_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("credit_limit__gte", 0)), name="ledger_account_credit_limit_non_negative")],
            },
        ),
        migrations.CreateModel(
            name="StockItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=200)),
                ("sku", models.CharField(max_length=80, unique=True)),
                ("kind", models.CharField(choices=[("finished_good", "Finished good"), ("raw_material", "Raw material")], default="finished_good", max_length=20)),
                ("category", models.CharField(blank=True, default="", max_length=80)),
                ("unit_of_measure", models.CharField(choices=[("PCS", "PCS"), ("Litres", "Litres"), ("KG", "KG"), ("Grams", "Grams"), ("Pack", "Pack"), ("Sachet", "Sachet"), ("Unit", "Unit"), ("Carton", "Carton"), ("Bag", "Bag"), ("Other", "Other")], default="PCS", max_length=10)),
                ("stock", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("low_stock_threshold", models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=14)),
                ("cost_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("sell_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["name"], name="stock_item_name_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("cost_price__gte", 0), ("sell_price__gte", 0)), name="stock_item_non_negative_prices")],
            },
        ),
        migrations.CreateModel(
            name="PriceTier",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("price_level", models.CharField(max_length=64)),
                ("price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("position", models.PositiveIntegerField(default=0)),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="price_tiers", to="ledger_core.stockitem")),
            ],
            options={
                "ordering": ["item", "position", "id"],
                "constraints": [
                    models.UniqueConstraint(fields=("item", "price_level"), name="uq_item_price_level"),
                    models.CheckConstraint(condition=models.Q(("price__gte", 0)), name="price_tier_non_negative"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=64, unique=True)),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("tax", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("status", models.CharField(choices=[("draft", "Draft"), ("sent", "Sent"), ("paid", "Paid"), ("overdue", "Overdue"), ("cancelled", "Cancelled")], default="draft", max_length=10)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="ledger_core.ledgeraccount")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["account", "status"], name="invoice_account_status_idx"),
                    models.Index(fields=["issue_date"], name="invoice_issue_date_idx"),
                ],
                "constraints": [models.CheckConstraint(condition=models.Q(("subtotal__gte", 0), ("discount__gte", 0), ("tax__gte", 0), ("total__gte", 0)), name="invoice_non_negative_amounts")],
            },
        ),
        migrations.CreateModel(
            name="InvoiceLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_name", models.CharField(max_length=200)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=18)),
                ("tier_applied", models.CharField(default="Standard", max_length=64)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.invoice")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.stockitem")),
            ],
            options={
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gt", 0), ("unit_price__gte", 0)), name="invl_positive_quantity_non_negative_price")],
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=64, unique=True)),
                ("date", models.DateField()),
                ("amount_received", models.DecimalField(decimal_places=2, max_digits=18)),
                ("method", models.CharField(choices=[("Cash", "Cash"), ("Card", "Card"), ("Transfer", "Transfer"), ("Online", "Online"), ("Cheque", "Cheque")], default="Cash", max_length=10)),
                ("bank_name", models.CharField(blank=True, default="", max_length=120)),
                ("reference", models.CharField(blank=True, default="", max_length=120)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="receipts", to="ledger_core.ledgeraccount")),
            ],
            options={
                "indexes": [models.Index(fields=["account", "date"], name="receipt_account_date_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount_received__gt", 0)), name="receipt_amount_positive")],
            },
        ),
        migrations.CreateModel(
            name="CreditNote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("number", models.CharField(max_length=64, unique=True)),
                ("date", models.DateField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=18)),
                ("reason", models.CharField(choices=[("Travel Expense Reimbursement", "Travel Expense Reimbursement"), ("Returned Goods", "Returned Goods"), ("Damages", "Damages"), ("Service Credit/Discount", "Service Credit/Discount"), ("Error Correction", "Error Correction"), ("Sales Rep Commission", "Sales Rep Commission"), ("Other Expense Reimbursement", "Other Expense Reimbursement"), ("Write Off", "Write Off"), ("Debt to be Credited", "Debt to be Credited"), ("Other", "Other")], max_length=40)),
                ("description", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="credit_notes", to="ledger_core.ledgeraccount")),
                ("related_invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="credit_notes", to="ledger_core.invoice")),
            ],
            options={
                "indexes": [models.Index(fields=["account", "date"], name="credit_note_account_date_idx")],
                "constraints": [models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="credit_note_amount_positive")],
            },
        ),
        migrations.CreateModel(
            name="CreditNoteLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("item_name", models.CharField(max_length=200)),
                ("quantity", models.DecimalField(decimal_places=4, max_digits=14)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=18)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=18)),
                ("credit_note", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="ledger_core.creditnote")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, to="ledger_core.stockitem")),
            ],
            options={
                "constraints": [models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="cnl_quantity_positive")],
            },
        ),
        migrations.CreateModel(
            name="StockAdjustmentLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("log_number", models.CharField(max_length=80, unique=True)),
                ("item_name", models.CharField(max_length=200)),
                ("adjustment_type", models.CharField(choices=[("addition", "Addition"), ("initial_stock", "Initial Stock"), ("manual_correction_add", "Manual Correction (Add)"), ("manual_correction_subtract", "Manual Correction (Subtract)"), ("sale_deduction", "Sale Deduction"), ("return_addition", "Return Addition")], max_length=30)),
                ("quantity_adjusted", models.DecimalField(decimal_places=4, max_digits=14)),
                ("previous_stock", models.DecimalField(decimal_places=4, max_digits=14)),
                ("new_stock", models.DecimalField(decimal_places=4, max_digits=14)),
                ("adjustment_date", models.DateField()),
                ("notes", models.TextField(blank=True, default="")),
                ("recorded_by", models.CharField(blank=True, default="", max_length=120)),
                ("source_type", models.CharField(blank=True, default="", max_length=40)),
                ("source_id", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="adjustments", to="ledger_core.stockitem")),
                ("reverses", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reversed_by", to="ledger_core.stockadjustmentlog")),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["item", "created_at"], name="stock_log_item_created_idx"),
                    models.Index(fields=["source_type", "source_id"], name="stock_log_source_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity_adjusted", 0), _negated=True), name="stock_log_non_zero_quantity"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(max_length=50)),
                ("object_type", models.CharField(max_length=100)),
                ("object_id", models.CharField(max_length=100)),
                ("changes", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["object_type", "object_id"], name="auditlog_object_idx"),
                    models.Index(fields=["created_at"], name="auditlog_created_idx"),
                ],
            },
        ),
    ]
