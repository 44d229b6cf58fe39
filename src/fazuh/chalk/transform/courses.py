from typing import Any, TypedDict

from loguru import logger


class Course(TypedDict):
    courseId: str
    courseName: str
    id: str


class CoursesPayload(TypedDict):
    courses: list[Course]


def parse_courses(data: Any) -> CoursesPayload:
    """
    Reshapes a memberships API response into the simplified course schema.

    Organizations and records without a course are dropped.

    Args:
        data: The decoded JSON body of the memberships endpoint.

    Returns:
        {"courses": [{"courseId", "courseName", "id"}, ...]}, empty when the input is malformed.
    """
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        logger.error("Invalid or incomplete course data. 'results' array is missing.")
        return {"courses": []}

    courses: list[Course] = []
    for enrollment in data["results"]:
        if not isinstance(enrollment, dict):
            continue

        course = enrollment.get("course")
        if not isinstance(course, dict) or course.get("isOrganization"):
            continue

        courses.append(
            {
                # e.g. "IT101-1.CIS103.1T.25.26"
                "courseId": course.get("courseId"),
                "courseName": course.get("name"),
                # internal id, e.g. "_55137_1"
                "id": course.get("id"),
            }
        )

    return {"courses": courses}
