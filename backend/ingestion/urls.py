"""
URL routes for the ingestion API.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    PatientViewSet,
    ScaleMeasurementViewSet,
    DataImportLogViewSet,
    TanitaPreviewView,
    DataSourcesView,
)

router = DefaultRouter()
router.register(r'patients', PatientViewSet, basename='patient')
router.register(r'scale-measurements', ScaleMeasurementViewSet, basename='scale-measurement')
router.register(r'imports', DataImportLogViewSet, basename='import-log')

urlpatterns = [
    # ViewSet routes
    path('', include(router.urls)),

    # Scale export upload (parse only, confirm via imports/{batch_id}/commit/)
    path('tanita/preview/', TanitaPreviewView.as_view(), name='tanita-preview'),

    # Data sources info
    path('ingest/sources/', DataSourcesView.as_view(), name='data-sources'),
]
