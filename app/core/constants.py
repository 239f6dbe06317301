from enum import Enum


class RoleEnum(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"

class CourseCategoryEnum(str, Enum):
    WEB = "web"
    MOBILE = "mobile"
    DATA_SCIENCE = "data-science"
    BUSINESS = "business"
    DESIGN = "design"
    MARKETING = "marketing"
    PROGRAMMING = "programming"
    IT = "it"
    PERSONAL_DEVELOPMENT = "personal-development"
    PHOTOGRAPHY = "photography"
    MUSIC = "music"
    HEALTH = "health"
    FITNESS = "fitness"
    ACADEMIC = "academic"
    LANGUAGE = "language"
    OTHER = "other"

# Accepted spellings from clients, mapped to the stored category.
CATEGORY_ALIASES = {
    "web-development": CourseCategoryEnum.WEB,
    "mobile-development": CourseCategoryEnum.MOBILE,
    "data": CourseCategoryEnum.DATA_SCIENCE,
    **{c.value: c for c in CourseCategoryEnum},
}

class CourseLevelEnum(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"
    ALL_LEVELS = "all-levels"

class CourseStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class LessonTypeEnum(str, Enum):
    VIDEO = "video"
    ARTICLE = "article"
    QUIZ = "quiz"
    ASSIGNMENT = "assignment"
    DOCUMENT = "document"

class EnrollmentStatusEnum(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

ENROLLMENT_TRANSITIONS = {
    EnrollmentStatusEnum.ACTIVE: {EnrollmentStatusEnum.COMPLETED, EnrollmentStatusEnum.CANCELLED},
    EnrollmentStatusEnum.CANCELLED: {EnrollmentStatusEnum.ACTIVE},
    EnrollmentStatusEnum.COMPLETED: set(),
}

class CourseSortFieldEnum(str, Enum):
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    TITLE = "title"
    PRICE = "price"
    RATING = "rating"
    TOTAL_ENROLLMENTS = "totalEnrollments"

class ReviewSortEnum(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    RATING = "rating"

MAX_COURSE_PRICE = 100000
MIN_RATING = 1
MAX_RATING = 5
MAX_REVIEW_COMMENT_LENGTH = 1000
