"""
REST API views for the ingestion module.
"""

import logging
import tempfile
import zipfile
from pathlib import Path

from rest_framework import viewsets, status, views
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.permissions import AllowAny  # Change to IsAuthenticated in production

from patients.models import DataImportLog, Patient, ScaleMeasurement
from .serializers import (
    CommitOptionsSerializer,
    DataImportLogSerializer,
    DataSourceInfoSerializer,
    FileUploadSerializer,
    ImportPreviewSerializer,
    PatientSerializer,
    ScaleMeasurementSerializer,
)
from .services import ImportStateError, IngestionService
from .adapters.base import AdapterRegistry

logger = logging.getLogger(__name__)


class PatientViewSet(viewsets.ModelViewSet):
    """
    API endpoint for patients.

    GET /api/v1/patients/ - List all patients
    GET /api/v1/patients/?birth_date=1990-05-01 - Filter by birth date
    GET /api/v1/patients/{id}/measurements/ - Scale measurements of a patient
    """

    queryset = Patient.objects.all()
    serializer_class = PatientSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        queryset = super().get_queryset()

        birth_date = self.request.query_params.get('birth_date')
        name = self.request.query_params.get('name')

        if birth_date:
            queryset = queryset.filter(birth_date=birth_date)
        if name:
            queryset = queryset.filter(name__icontains=name)

        return queryset

    @action(detail=True, methods=['get'])
    def measurements(self, request, pk=None):
        """
        GET /api/v1/patients/{id}/measurements/
        Scale measurements of one patient, newest first.
        """
        patient = self.get_object()
        queryset = patient.scale_measurements.all()

        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = ScaleMeasurementSerializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = ScaleMeasurementSerializer(queryset, many=True)
        return Response(serializer.data)


class ScaleMeasurementViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for scale measurements (read-only, written by imports).

    GET /api/v1/scale-measurements/?patient=3
    GET /api/v1/scale-measurements/?start_date=2024-06-01&end_date=2024-06-30
    """

    queryset = ScaleMeasurement.objects.select_related('patient')
    serializer_class = ScaleMeasurementSerializer
    permission_classes = [AllowAny]

    def get_queryset(self):
        queryset = super().get_queryset()

        patient = self.request.query_params.get('patient')
        start_date = self.request.query_params.get('start_date')
        end_date = self.request.query_params.get('end_date')

        if patient:
            queryset = queryset.filter(patient_id=patient)
        if start_date:
            queryset = queryset.filter(timestamp__date__gte=start_date)
        if end_date:
            queryset = queryset.filter(timestamp__date__lte=end_date)

        return queryset


class DataImportLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    API endpoint for import history.

    GET /api/v1/imports/ - List all imports
    GET /api/v1/imports/{batch_id}/ - Import details with the parsed slots
    POST /api/v1/imports/{batch_id}/commit/ - Confirm a pending import
    """

    queryset = DataImportLog.objects.all()
    serializer_class = DataImportLogSerializer
    permission_classes = [AllowAny]
    lookup_field = 'batch_id'

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return ImportPreviewSerializer
        return super().get_serializer_class()

    @action(detail=True, methods=['post'])
    def commit(self, request, batch_id=None):
        """
        POST /api/v1/imports/{batch_id}/commit/
        Reconcile the reviewed slots with patients and store the measurements.
        """
        import_log = self.get_object()

        options = CommitOptionsSerializer(data=request.data)
        options.is_valid(raise_exception=True)

        service = IngestionService(skip_duplicates=options.validated_data['skip_duplicates'])
        try:
            import_log = service.commit(import_log)
        except ImportStateError as e:
            return Response({'detail': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(
            DataImportLogSerializer(import_log).data,
            status=status.HTTP_200_OK if import_log.status == 'completed' else status.HTTP_500_INTERNAL_SERVER_ERROR
        )


class TanitaPreviewView(views.APIView):
    """
    Upload a scale export and parse it without touching patients.

    POST /api/v1/tanita/preview/

    Body (multipart/form-data):
    - file: ZIP of the SD card root or of its TANITA folder
    - source: (optional) scale source type

    The response lists every slot found; confirm with
    POST /api/v1/imports/{batch_id}/commit/.
    """

    parser_classes = [MultiPartParser, FormParser]
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = FileUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        uploaded_file = serializer.validated_data['file']
        source = serializer.validated_data.get('source')

        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir = Path(tmpdir)
            file_path = tmpdir / Path(uploaded_file.name).name

            with open(file_path, 'wb') as f:
                for chunk in uploaded_file.chunks():
                    f.write(chunk)

            extract_dir = tmpdir / 'extracted'
            extract_dir.mkdir()

            try:
                with zipfile.ZipFile(file_path, 'r') as zf:
                    zf.extractall(extract_dir)
            except zipfile.BadZipFile:
                logger.warning(f"Rejected upload {uploaded_file.name}: not a ZIP archive")
                return Response(
                    {'detail': 'The uploaded file is not a valid ZIP archive.'},
                    status=status.HTTP_400_BAD_REQUEST
                )

            data_root = self._find_data_root(extract_dir)

            service = IngestionService()
            import_log = service.preview(data_root, source=source, file_name=uploaded_file.name)

        return Response(
            ImportPreviewSerializer(import_log).data,
            status=status.HTTP_201_CREATED if import_log.status == 'pending' else status.HTTP_400_BAD_REQUEST
        )

    def _find_data_root(self, extract_dir: Path) -> Path:
        """
        Find the export root in an extracted ZIP.
        Descends through single wrapping folders until an adapter recognises it.
        """
        if AdapterRegistry.get_adapter_for(extract_dir) is not None:
            return extract_dir

        children = [c for c in extract_dir.iterdir() if c.name != '__MACOSX']

        # If there's only one child and it's a directory, go into it
        if len(children) == 1 and children[0].is_dir():
            return self._find_data_root(children[0])

        return extract_dir


class DataSourcesView(views.APIView):
    """
    List supported data sources and their capabilities.

    GET /api/v1/ingest/sources/
    """

    permission_classes = [AllowAny]

    def get(self, request):
        sources = [
            {
                'name': 'tanita',
                'label': 'Tanita (GRAPHV1 SD card export)',
                'supported_formats': ['zip'],
                'description': (
                    'Upload a ZIP of the scale SD card (or its TANITA folder) '
                    'containing GRAPHV1/SYSTEM/PROF1-4.CSV and GRAPHV1/DATA/DATA1-4.CSV.'
                ),
            },
        ]

        serializer = DataSourceInfoSerializer(sources, many=True)
        return Response(serializer.data)
