"""Permission names checked by back-office routes.

Permission rows are created by a super admin at runtime and looked up by
name. Promotion and grant management need no entry here: the authorization
engine restricts them to SUPER_ADMIN.
"""

CREATE_EVENT = "CREATE_EVENT"
EDIT_EVENT = "EDIT_EVENT"
DELETE_EVENT = "DELETE_EVENT"
CHANGE_EVENT_STATUS = "CHANGE_EVENT_STATUS"
VIEW_USERS = "VIEW_USERS"
MANAGE_CATEGORIES = "MANAGE_CATEGORIES"
VIEW_ANALYTICS = "VIEW_ANALYTICS"
