from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.config import settings
from app.core.logging import configure_logging
from app.endpoints import admin, course, enrollment, lesson, review, user
from app.middleware.exceptions import (
    global_exception_handler,
    http_exception_handler,
    integrity_exception_handler,
    validation_exception_handler,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.schemas.response import APIResponse

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_exception_handler)

api = settings.API_PREFIX

# Literal /courses paths are registered before the /{course_id} routes
app.include_router(enrollment.router, prefix=f"{api}/courses", tags=["Enrollments"])
app.include_router(course.router, prefix=f"{api}/courses", tags=["Courses"])
app.include_router(lesson.router, prefix=f"{api}/courses", tags=["Lessons"])
app.include_router(review.router, prefix=f"{api}/courses", tags=["Reviews"])
app.include_router(review.reviews_router, prefix=f"{api}/reviews", tags=["Reviews"])
app.include_router(user.router, prefix=f"{api}/users", tags=["Users"])
app.include_router(admin.router, prefix=f"{api}/admin", tags=["Admin"])


@app.get(f"{api}/health", response_model=APIResponse[dict], tags=["Health"])
def health_check():
    return APIResponse(message="OK", data={"status": "healthy", "version": settings.VERSION})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
