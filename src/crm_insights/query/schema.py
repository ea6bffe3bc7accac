"""Callable definition of the query_crm tool advertised to the reasoning service."""

from crm_insights.models.query import ENTITIES, OPERATIONS

TOOL_NAME = "query_crm"

QUERY_CRM_TOOL: dict = {
    "name": TOOL_NAME,
    "description": (
        "Query the CRM database. Always use this tool to answer data questions - never guess or estimate. "
        "You may call it multiple times in sequence to build up an answer."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "entity": {
                "type": "string",
                "enum": list(ENTITIES),
                "description": "Which dataset to query.",
            },
            "operation": {
                "type": "string",
                "enum": list(OPERATIONS),
                "description": (
                    "list: return matching records. count: count them. "
                    "sum/avg/min/max: aggregate a numeric field. "
                    "percentile: Nth percentile of a numeric field (requires percentile_value). "
                    "distribution: group by a field and count records (requires group_by)."
                ),
            },
            "field": {
                "type": "string",
                "description": (
                    "Field to aggregate. Required for sum/avg/min/max/percentile. "
                    "Opportunities: 'amount' or 'closeDate'. "
                    "Leads: 'Lead Status', 'Company', 'First Name', 'Last Name'. "
                    "Accounts: 'Company Name', 'City', 'State'. "
                    "Contacts: 'first_name', 'last_name', 'email'."
                ),
            },
            "filters": {
                "type": "array",
                "description": "Optional filter conditions, ANDed together.",
                "items": {
                    "type": "object",
                    "properties": {
                        "field": {"type": "string", "description": "Field name to filter on."},
                        "op": {
                            "type": "string",
                            "enum": ["eq", "neq", "gte", "lte", "contains", "not_contains"],
                            "description": (
                                "eq/neq: equality (case-insensitive for strings). "
                                "gte/lte: numeric or date comparison. "
                                "contains/not_contains: substring match."
                            ),
                        },
                        "value": {"type": "string", "description": "Value to compare against."},
                    },
                    "required": ["field", "op", "value"],
                },
            },
            "group_by": {
                "type": "string",
                "description": "Required for distribution. Field whose distinct values form the groups.",
            },
            "percentile_value": {
                "type": "number",
                "description": "Required for percentile. A number between 0 and 100.",
            },
            "limit": {
                "type": "integer",
                "description": "For list only. Max records to return. Default 20, max 100.",
            },
        },
        "required": ["entity", "operation"],
    },
}
