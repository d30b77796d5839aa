import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from django.utils import timezone

from textile_erp.core.cache_utils import get_cached_dashboard_kpis, cache_dashboard_kpis
from textile_erp.core.permissions import IsCompanyAdmin, get_request_company, get_company_object
from textile_erp.core.responses import api_success, api_error, validation_error
from textile_erp.core.utils import create_audit_log
from . import services
from .models import AutomatedReport
from .serializers import AutomatedReportSerializer

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard(request):
    """Company overview KPIs (cached per company)"""
    company = get_request_company(request)
    cached, cache_key = get_cached_dashboard_kpis(company.pk)
    if cached is not None:
        return api_success(cached)

    data = services.dashboard_kpis(company)
    cache_dashboard_kpis(cache_key, data)
    return api_success(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def production_summary(request):
    company = get_request_company(request)
    date_from, date_to = services.parse_date_range(request.query_params)
    return api_success(services.production_summary(company, date_from, date_to))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def quality_summary(request):
    company = get_request_company(request)
    date_from, date_to = services.parse_date_range(request.query_params)
    return api_success(services.quality_summary(company, date_from, date_to))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dispatch_summary(request):
    company = get_request_company(request)
    date_from, date_to = services.parse_date_range(request.query_params)
    return api_success(services.dispatch_summary(company, date_from, date_to))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def automated_report_list_create(request):
    company = get_request_company(request)

    if request.method == 'GET':
        reports = AutomatedReport.objects.filter(company=company)
        return api_success(AutomatedReportSerializer(reports, many=True).data)

    serializer = AutomatedReportSerializer(data=request.data, context={'request': request, 'company': company})
    if serializer.is_valid():
        report = serializer.save(created_by=request.user)
        create_audit_log(request, 'create', 'AutomatedReport', report.pk, company=company,
                         object_reference=report.name,
                         changes={'report_type': report.report_type, 'frequency': report.frequency})
        return api_success(AutomatedReportSerializer(report).data, status_code=status.HTTP_201_CREATED)
    return validation_error(serializer.errors)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def automated_report_detail(request, pk):
    company = get_request_company(request)
    report = get_company_object(AutomatedReport.objects.all(), company, pk=pk)

    if request.method == 'GET':
        return api_success(AutomatedReportSerializer(report).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AutomatedReportSerializer(report, data=request.data, partial=request.method == 'PATCH',
                                               context={'request': request, 'company': company})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'AutomatedReport', report.pk, company=company,
                             object_reference=report.name,
                             changes={key: str(value) for key, value in serializer.validated_data.items()})
            return api_success(serializer.data)
        return validation_error(serializer.errors)
    else:  # DELETE
        create_audit_log(request, 'delete', 'AutomatedReport', report.pk, company=company,
                         object_reference=report.name)
        report.delete()
        return api_success(None, message='Automated report deleted.')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsCompanyAdmin])
def automated_report_run(request, pk):
    """Send one automated report now without changing its schedule"""
    company = get_request_company(request)
    report = get_company_object(AutomatedReport.objects.select_related('company'), company, pk=pk)
    try:
        data = services.run_report(report, now=timezone.now(), reschedule=False)
    except Exception as e:
        logger.warning(f"Manual run of automated report {report.pk} failed for company {company.code}")
        return api_error('report_failed', f"Report could not be sent: {str(e)}",
                         status_code=status.HTTP_502_BAD_GATEWAY)

    create_audit_log(request, 'report_run', 'AutomatedReport', report.pk, company=company,
                     object_reference=report.name)
    return api_success({'report': AutomatedReportSerializer(report).data, 'result': data},
                       message='Report sent.')
