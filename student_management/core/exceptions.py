"""Application exceptions.

Services raise these instead of HTTP errors so that the JSON API and the
HTML pages can each translate them for their own surface. The JSON mapping
lives in ``main.py``.
"""


class StudentManagementError(Exception):
    """Base exception for all student management errors."""

    pass


class NotFoundError(StudentManagementError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, identifier, message: str | None = None):
        """Initialize the exception.

        Args:
            entity: Human readable entity name, e.g. ``"Course"``.
            identifier: The id (or id pair) that was looked up.
            message: Overrides the default ``"<entity> with ID <id> not found"``.
        """
        self.entity = entity
        self.identifier = identifier
        super().__init__(message or f"{entity} with ID {identifier} not found")


class ValidationError(StudentManagementError):
    """Raised when input fails field-level validation.

    ``errors`` maps a field name to its message. An empty key holds errors
    that belong to the whole form.
    """

    def __init__(self, errors: dict[str, str], message: str = "Validation failed"):
        self.errors = errors
        super().__init__(message)


class IdMismatchError(StudentManagementError):
    """Raised when the path id and the body id of an update differ."""

    def __init__(self, path_id: int, body_id: int):
        self.path_id = path_id
        self.body_id = body_id
        super().__init__("ID mismatch")


class ConcurrencyConflictError(StudentManagementError):
    """Raised when an optimistic update lost a race with another writer."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(
            f"{entity} with ID {identifier} was modified by another request"
        )


class EnrollmentProblem(StudentManagementError):
    """One reason an enrollment was rejected."""

    code = "enrollment_problem"
    field = ""


class UnknownStudentError(EnrollmentProblem):
    code = "unknown_student"
    field = "student_id"

    def __init__(self, student_id: int):
        self.student_id = student_id
        super().__init__(f"Student with ID {student_id} not found")


class UnknownCourseError(EnrollmentProblem):
    code = "unknown_course"
    field = "course_id"

    def __init__(self, course_id: int):
        self.course_id = course_id
        super().__init__(f"Course with ID {course_id} not found")


class DuplicateEnrollmentError(EnrollmentProblem):
    code = "duplicate_enrollment"

    def __init__(self, student_id: int, course_id: int):
        self.student_id = student_id
        self.course_id = course_id
        super().__init__("Student is already enrolled in this course")


class EnrollmentRejectedError(StudentManagementError):
    """Raised by ``enroll`` with every problem found, not only the first."""

    def __init__(self, problems: list[EnrollmentProblem]):
        self.problems = problems
        super().__init__("; ".join(str(p) for p in problems))

    def has(self, problem_type: type) -> bool:
        return any(isinstance(p, problem_type) for p in self.problems)


class AccountError(StudentManagementError):
    """Raised when a principal cannot be created or changed."""

    pass


class AuthenticationError(AccountError):
    """Raised for bad credentials and unusable refresh tokens."""

    pass


class DuplicateAccountError(AccountError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"An account with email {email} already exists")


class PasswordPolicyError(AccountError):
    """Raised when a password does not satisfy the password policy."""

    def __init__(self, failures: list[str]):
        self.failures = failures
        super().__init__(" ".join(failures))


class BootstrapError(StudentManagementError):
    """Raised when the startup identity seeding cannot complete."""

    pass


class ConfigurationError(StudentManagementError):
    """Raised when the settings describe an unsafe deployment."""

    pass
