import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("ledger_core", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="stockadjustmentlog",
            name="adjustment_type",
            field=models.CharField(choices=[("addition", "Addition"), ("initial_stock", "Initial Stock"), ("manual_correction_add", "Manual Correction (Add)"), ("manual_correction_subtract", "Manual Correction (Subtract)"), ("sale_deduction", "Sale Deduction"), ("return_addition", "Return Addition"), ("usage_deduction", "Raw Material Usage")], max_length=30),
        ),
        migrations.CreateModel(
            name="MaterialUsage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("usage_number", models.CharField(max_length=64, unique=True)),
                ("item_name", models.CharField(max_length=200)),
                ("quantity_used", models.DecimalField(decimal_places=4, max_digits=14)),
                ("unit_of_measure", models.CharField(choices=[("PCS", "PCS"), ("Litres", "Litres"), ("KG", "KG"), ("Grams", "Grams"), ("Pack", "Pack"), ("Sachet", "Sachet"), ("Unit", "Unit"), ("Carton", "Carton"), ("Bag", "Bag"), ("Other", "Other")], max_length=10)),
                ("department", models.CharField(choices=[("Production", "Production"), ("Cleaning", "Cleaning"), ("Packaging", "Packaging"), ("Maintenance", "Maintenance"), ("Office", "Office"), ("Wastage", "Wastage"), ("Other", "Other")], max_length=20)),
                ("usage_date", models.DateField()),
                ("notes", models.TextField(blank=True, default="")),
                ("recorded_by", models.CharField(blank=True, default="", max_length=120)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("adjustment", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="usage", to="ledger_core.stockadjustmentlog")),
                ("item", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="usages", to="ledger_core.stockitem")),
            ],
            options={
                "ordering": ["-usage_date", "-id"],
                "indexes": [
                    models.Index(fields=["department", "usage_date"], name="usage_department_date_idx"),
                    models.Index(fields=["item", "usage_date"], name="usage_item_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity_used__gt", 0)), name="usage_quantity_positive"),
                ],
            },
        ),
    ]
