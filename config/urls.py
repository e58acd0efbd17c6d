"""
URL configuration for Taskshare project.
"""
from django.urls import path
from ninja import NinjaAPI

from apps.core.exceptions import ServiceError

api = NinjaAPI(
    title="Taskshare API",
    version="1.0.0",
    description="Shared task list with per-task sharing and optimistic concurrency",
    docs_url="/docs",
)


@api.exception_handler(ServiceError)
def service_error(request, exc: ServiceError):
    return api.create_response(
        request,
        {"detail": exc.message, "code": exc.code},
        status=exc.status_code,
    )


from apps.core.api import router as health_router
from apps.identity.api import me_router, router as identity_router
from apps.tasks.api import ai_router, router as tasks_router

api.add_router("/health", health_router)
api.add_router("/auth", identity_router)
api.add_router("/me", me_router)
api.add_router("/tasks", tasks_router)
api.add_router("/ai", ai_router)

urlpatterns = [
    path('api/', api.urls),
]
