# Logical entity and attribute names used by the related activities rewrite

# Activities
ACTIVITY_ENTITY = "activitypointer"
ACTIVITY_ID = "activityid"
REGARDING_OBJECT_ID = "regardingobjectid"

# Channel activity types and the attribute marking a subsystem-created mirror
LETTER_ENTITY = "letter"
EMAIL_ENTITY = "email"
PHONE_CALL_ENTITY = "phonecall"
COMMUNICATION_ACTIVITY_ID = "elcn_communicationactivityid"

# Channel entity -> alias of its exclusion join
CHANNEL_ALIASES = {
    LETTER_ENTITY: "removeletter",
    EMAIL_ENTITY: "removeemail",
    PHONE_CALL_ENTITY: "removephone",
}

# Activity parties
ACTIVITY_PARTY_ENTITY = "activityparty"
ACTIVITY_PARTY_ALIAS = "activity_party"
PARTY_ID = "partyid"

# Personal relationships
RELATIONSHIP_ENTITY = "elcn_personalrelationship"
RELATIONSHIP_ID = "elcn_personalrelationshipid"
PERSON1_ID = "elcn_person1id"
PERSON2_ID = "elcn_person2id"
RELATIONSHIP_TYPE_LINK = "elcn_relationshiptype1id"

RELATIONSHIP_TYPE_ENTITY = "elcn_personalrelationshiptype"
RELATIONSHIP_TYPE_ID = "elcn_personalrelationshiptypeid"
IS_SPOUSAL = "elcn_isspousal"
RELATIONSHIP_STATUS_LINK = "elcn_relationshipstatusid"

STATUS_ENTITY = "elcn_status"
STATUS_ID = "elcn_statusid"
STATUS_NAME = "elcn_name"

# Organizations
ACCOUNT_ENTITY = "account"
ACCOUNT_ID = "accountid"
PARENT_ACCOUNT_ID = "parentaccountid"
