"""Sample week used by the demo entry points: three classes, sleep, and two social commitments."""

DEMO_CATEGORIES = [
    {
        "id": "school",
        "name": "school-work",
        "priority": 0.7,
        "children": [
            {
                "id": "bio101",
                "name": "Biology-101",
                "relativePriority": 0.4,
                "maxStretch": 1.0,
                "meetingTimes": [
                    {"day": "monday", "start": 800, "end": 900},
                    {"day": "wednesday", "start": 800, "end": 900},
                    {"day": "friday", "start": 800, "end": 900},
                ],
                "preferredTimeBlocks": ["morning", "afternoon"],
                "dependencyIds": [],
            },
            {
                "id": "eng204",
                "name": "English-204",
                "relativePriority": 0.2,
                "maxStretch": 2.0,
                "meetingTimes": [
                    {"day": "tuesday", "start": 1330, "end": 1530},
                    {"day": "thursday", "start": 1330, "end": 1530},
                ],
                "preferredTimeBlocks": ["morning", "afternoon"],
                "dependencyIds": [],
            },
            {
                "id": "chem301",
                "name": "Chemistry-301",
                "relativePriority": 0.4,
                "maxStretch": 2.0,
                "meetingTimes": [
                    {"day": "tuesday", "start": 900, "end": 1100},
                    {"day": "thursday", "start": 900, "end": 1100},
                ],
                "preferredTimeBlocks": ["morning", "afternoon"],
                "dependencyIds": [],
            },
        ],
    },
    {
        "id": "rest",
        "name": "Sleep",
        "priority": 0.2,
        "isSleep": True,
        "children": [
            {
                "id": "night-sleep",
                "name": "NightSleep",
                "relativePriority": 1.0,
                "maxStretch": 8.0,
                "preferredTimeBlocks": ["night"],
                "dependencyIds": [],
            },
        ],
    },
    {
        "id": "social",
        "name": "Socializing",
        "priority": 0.1,
        "children": [
            {
                "id": "friends",
                "name": "FriendHang",
                "relativePriority": 0.7,
                "maxStretch": 3.0,
                "preferredTimeBlocks": ["evening"],
                "dependencyIds": [],
            },
            {
                "id": "family",
                "name": "FamilyTime",
                "relativePriority": 0.3,
                "maxStretch": 2.5,
                "preferredTimeBlocks": ["evening"],
                "dependencyIds": [],
            },
        ],
    },
]
