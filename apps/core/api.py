"""
Health probes for load balancers and orchestrators.
"""
import logging

from django.db import connection, DatabaseError
from ninja import Router

logger = logging.getLogger(__name__)

router = Router(tags=["Health"])


@router.get("/liveness", auth=None)
def liveness(request):
    return {"status": "UP"}


@router.get("/readiness", response={200: dict, 503: dict}, auth=None)
def readiness(request):
    """
    Ready when the database answers a trivial query.
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as e:
        logger.error(f"Readiness probe failed: {e}")
        return 503, {"status": "DOWN"}
    return 200, {"status": "UP"}
