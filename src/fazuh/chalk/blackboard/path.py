class Path:
    """URL constants for the Blackboard Ultra portal.

    Contains the base hostname, the page that embeds the signed-in user, and the
    REST endpoints the engine reads from.
    """

    HOSTNAME = "https://mcl.blackboard.com/"
    ULTRA = f"{HOSTNAME}ultra"
    STREAM = f"{HOSTNAME}learn/api/v1/streams/ultra"
    MEMBERSHIPS = (
        f"{HOSTNAME}learn/api/v1/users/{{user_id}}/memberships"
        "?expand=course.effectiveAvailability,course.permissions,courseRole"
        "&includeCount=true&limit=10000"
    )

    @classmethod
    def memberships(cls, user_id: str) -> str:
        return cls.MEMBERSHIPS.format(user_id=user_id)
