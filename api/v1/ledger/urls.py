"""
URL configuration for ledger API endpoints.
"""

from django.urls import path

from api.v1.ledger import views

urlpatterns = [
    path(
        "claim-tokens",
        views.ClaimTokensView.as_view(),
        name="claim-tokens",
    ),
    path(
        "consume-tokens",
        views.ConsumeTokensView.as_view(),
        name="consume-tokens",
    ),
    path(
        "validate",
        views.ValidateSerialView.as_view(),
        name="validate-serial",
    ),
    path(
        "add-tokens",
        views.AddTokensView.as_view(),
        name="add-tokens",
    ),
    path(
        "completions",
        views.CompletionView.as_view(),
        name="completions",
    ),
]
