from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("accounts/<int:account_id>/balance/",
         views.account_balance_view, name="account-balance"),
    path("accounts/<int:account_id>/credit-check/",
         views.credit_check_view, name="credit-check"),
    path("items/<int:item_id>/price/", views.item_price_view, name="item-price"),
    path("items/<int:item_id>/adjustments/",
         views.append_adjustment_view, name="append-adjustment"),
    path("adjustments/batch/", views.append_batch_view, name="append-batch"),
    path("adjustments/<int:log_id>/reverse/",
         views.reverse_adjustment_view, name="reverse-adjustment"),
]
