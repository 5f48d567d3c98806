from types import SimpleNamespace

import pytest

from related_activities.backends.memory import InMemoryRecordStore
from related_activities.config import RelatedActivitiesSettings
from related_activities.pipeline import RelatedActivitiesPipeline
from tests.utils import new_id


@pytest.fixture
def ids():
    """
    Named identifiers for a small constituent world.

    People: ``person`` is married to ``spouse``, was married to ``ex_spouse``
    and has a ``sibling``. Organizations: ``parent_org`` has ``child_org``,
    which has ``grandchild_org``; ``other_org`` stands alone.
    """
    names = [
        "person", "spouse", "ex_spouse", "sibling",
        "parent_org", "child_org", "grandchild_org", "other_org",
        "status_current", "status_former",
        "type_spouse", "type_former_spouse", "type_sibling",
    ]
    return SimpleNamespace(**{name: new_id() for name in names})


@pytest.fixture
def activities(ids):
    """Activity identifiers keyed by what makes each one interesting."""
    return SimpleNamespace(**{name: new_id() for name in [
        "about_person",
        "about_spouse",
        "about_child_org",
        "about_other_org_with_person_party",
        "email_mirror_about_person",
        "plain_email_about_person",
        "about_ex_spouse",
        "about_sibling",
        "about_grandchild_org",
        "about_parent_org",
    ]})


@pytest.fixture
def records(ids, activities):
    """Records for every entity the lookups and the rewritten query touch."""
    a = activities

    def activity(activity_id, regarding, subject):
        return {"activityid": activity_id, "regardingobjectid": regarding, "subject": subject}

    return {
        "elcn_status": [
            {"elcn_statusid": ids.status_current, "elcn_name": "Current"},
            {"elcn_statusid": ids.status_former, "elcn_name": "Former"},
        ],
        "elcn_personalrelationshiptype": [
            {"elcn_personalrelationshiptypeid": ids.type_spouse,
             "elcn_isspousal": True, "elcn_relationshipstatusid": ids.status_current},
            {"elcn_personalrelationshiptypeid": ids.type_former_spouse,
             "elcn_isspousal": True, "elcn_relationshipstatusid": ids.status_former},
            {"elcn_personalrelationshiptypeid": ids.type_sibling,
             "elcn_isspousal": False, "elcn_relationshipstatusid": ids.status_current},
        ],
        "elcn_personalrelationship": [
            {"elcn_personalrelationshipid": new_id(), "elcn_person1id": ids.person,
             "elcn_person2id": {"id": ids.spouse}, "elcn_relationshiptype1id": ids.type_spouse},
            {"elcn_personalrelationshipid": new_id(), "elcn_person1id": ids.person,
             "elcn_person2id": {"id": ids.ex_spouse}, "elcn_relationshiptype1id": ids.type_former_spouse},
            {"elcn_personalrelationshipid": new_id(), "elcn_person1id": ids.person,
             "elcn_person2id": {"id": ids.sibling}, "elcn_relationshiptype1id": ids.type_sibling},
        ],
        "account": [
            {"accountid": ids.parent_org, "parentaccountid": None},
            {"accountid": ids.child_org, "parentaccountid": ids.parent_org},
            {"accountid": ids.grandchild_org, "parentaccountid": ids.child_org},
            {"accountid": ids.other_org, "parentaccountid": None},
        ],
        "activitypointer": [
            activity(a.about_person, ids.person, "Visit"),
            activity(a.about_spouse, ids.spouse, "Thank you call"),
            activity(a.about_child_org, ids.child_org, "Grant meeting"),
            activity(a.about_other_org_with_person_party, ids.other_org, "Gala"),
            activity(a.email_mirror_about_person, ids.person, "Newsletter"),
            activity(a.plain_email_about_person, ids.person, "Follow up"),
            activity(a.about_ex_spouse, ids.ex_spouse, "Old pledge"),
            activity(a.about_sibling, ids.sibling, "Reunion"),
            activity(a.about_grandchild_org, ids.grandchild_org, "Site visit"),
            activity(a.about_parent_org, ids.parent_org, "Board meeting"),
        ],
        "email": [
            {"activityid": a.email_mirror_about_person, "elcn_communicationactivityid": new_id()},
            {"activityid": a.plain_email_about_person, "elcn_communicationactivityid": None},
        ],
        "letter": [],
        "phonecall": [],
        "activityparty": [
            {"activityid": a.about_person, "partyid": ids.person},
            {"activityid": a.about_person, "partyid": ids.spouse},
            {"activityid": a.about_other_org_with_person_party, "partyid": ids.person},
            {"activityid": a.about_sibling, "partyid": ids.sibling},
        ],
    }


@pytest.fixture
def store(records):
    """In-memory record store holding the sample world."""
    return InMemoryRecordStore(records)


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return RelatedActivitiesSettings()


@pytest.fixture
def pipeline(store, settings):
    """Pipeline over the sample world."""
    return RelatedActivitiesPipeline(store, settings=settings)
