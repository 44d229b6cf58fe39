from typing import Any, Literal, TypedDict

from loguru import logger

PROVIDER_ID = "bb-nautilus"
SOURCE_TYPES: dict[str, Literal["Assignment", "Test"]] = {
    "UA": "Assignment",
    "TE": "Test",
}


class Activity(TypedDict):
    activityName: str
    courseName: str
    type: Literal["Assignment", "Test"]
    dueDate: str | None
    givenDate: str | None


class ActivitiesPayload(TypedDict):
    activities: list[Activity]


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _course_names(extras: dict) -> dict[str, str]:
    courses = _first(extras, "sx_courses", "courses")
    if isinstance(courses, dict):
        return {str(k): v for k, v in courses.items()}
    if not isinstance(courses, list):
        return {}
    return {
        course["id"]: course.get("name")
        for course in courses
        if isinstance(course, dict) and isinstance(course.get("id"), str)
    }


def parse_activities(data: Any) -> ActivitiesPayload:
    """
    Reshapes an activity stream response into the simplified activity schema.

    Only course content notifications for assignments (UA) and tests (TE) are kept.
    An activity shows up once per lifecycle event (available, due, ...), so entries
    are collapsed by (activityName, courseName), keeping the last one seen.

    Args:
        data: The decoded JSON body of the stream endpoint.

    Returns:
        {"activities": [...]}, empty when the input is malformed.
    """
    if not isinstance(data, dict):
        logger.error("Invalid or incomplete activity stream data.")
        return {"activities": []}

    entries = _first(data, "sv_streamEntries", "streamEntries")
    extras = _first(data, "sv_extras", "extras")
    if not isinstance(entries, list) or not isinstance(extras, dict):
        logger.error("Invalid or incomplete activity stream data.")
        return {"activities": []}

    course_names = _course_names(extras)

    unique: dict[tuple[str, str], Activity] = {}
    for entry in entries:
        if not isinstance(entry, dict) or entry.get("providerId") != PROVIDER_ID:
            continue

        details = entry.get("itemSpecificData")
        notification = details.get("notificationDetails") if isinstance(details, dict) else None
        if not isinstance(notification, dict):
            continue

        source_type = notification.get("sourceType")
        activity_type = SOURCE_TYPES.get(source_type) if isinstance(source_type, str) else None
        if activity_type is None:
            continue

        course_id = _first(entry, "se_courseId", "courseId")
        course_name = course_names.get(course_id) if isinstance(course_id, str) else None
        if not isinstance(course_name, str) or not course_name:
            course_name = "Unknown Course"
        title = details.get("title")
        activity: Activity = {
            "activityName": title if isinstance(title, str) and title else "Untitled Activity",
            "courseName": course_name,
            "type": activity_type,
            "dueDate": notification.get("dueDate") or None,
            "givenDate": notification.get("startDate") or None,
        }
        unique[(activity["activityName"], activity["courseName"])] = activity

    return {"activities": list(unique.values())}
