# requests_core/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import AuditLogViewSet, HealthCheckView, ProductTemplateViewSet, SampleRequestViewSet
from .views_deadline import RequestDeadlineView
from .views_identity import WhoAmIView
from .views_workflow_api import (
    WorkflowAllowedView,
    WorkflowDefinitionView,
    WorkflowTimelineView,
    WorkflowTransitionView,
)


app_name = "requests_core"

router = DefaultRouter()
router.register(r"requests", SampleRequestViewSet, basename="request")
router.register(r"templates", ProductTemplateViewSet, basename="template")
router.register(r"audit-logs", AuditLogViewSet, basename="auditlog")


urlpatterns = [
    path("", include(router.urls)),

    # System
    path("health/", HealthCheckView.as_view(), name="health"),
    path("whoami/", WhoAmIView.as_view(), name="whoami"),

    # Deadline
    path("requests/<int:pk>/deadline/", RequestDeadlineView.as_view(), name="request-deadline"),

    # Workflow
    path("workflows/definition/", WorkflowDefinitionView.as_view(), name="workflow-definition"),
    path(
        "requests/<int:pk>/workflow/allowed/",
        WorkflowAllowedView.as_view(),
        name="workflow-allowed",
    ),
    path(
        "requests/<int:pk>/workflow/transition/",
        WorkflowTransitionView.as_view(),
        name="workflow-transition",
    ),
    path("requests/<int:pk>/timeline/", WorkflowTimelineView.as_view(), name="workflow-timeline"),
]
