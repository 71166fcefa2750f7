# Built-in sample records used when no Placker credentials are configured.
# Field names are best guesses; the field report shows what a live response
# actually carries.

SAMPLE_CARD = {
    "id": 57175086,
    "title": "USER STORY: Editable Cable Form for Engineers (CoPilot Estimate 14 Hours)",
    "status": "COMPLETED",
    "endDates": {"actual": "2026-02-19T21:13:51+01:00"},
    "description": (
        "As an engineer, I want an editable form for cable updates...\n\n"
        "[COED Word and Access Files](https://hosemccann1.sharepoint.com/:f:/r/sites/HMCJOBS/"
        "Shared%20Documents/FRC-ITAR/68+/Engineering/COED%20Word%20and%20Access%20Files"
        "?csf=1&web=1&e=HRdTpP \"‌\")"
    ),
}

SAMPLE_COMMENTS = [
    {
        "content": "Initial review complete. Cable form prototype looks good.",
        "author": {"name": "Jay Samples"},
        "created": "2026-02-18T14:30:00+01:00",
    },
    {
        "content": "QA passed. Moving to Done.",
        "author": {"name": "Jane Engineer"},
        "created": "2026-02-19T09:15:00+01:00",
    },
]

SAMPLE_CHECKLISTS = [
    {
        "title": "Definition of Done",
        "items": [
            {"title": "Form is functional and tested with real data", "status": "complete"},
            {"title": "Engineer confirms usability and accuracy", "status": "complete"},
            {"title": "Data integrity is maintained", "status": "complete"},
        ],
    },
    {
        "title": "Acceptance Criteria",
        "items": [
            {"title": "Engineer can select a cable by CBL_NUM", "status": "complete"},
            {"title": "Validation prevents incomplete entries", "status": "incomplete"},
        ],
    },
]
