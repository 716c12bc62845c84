"""
Table schema definitions for the IMS tables.

This module provides the Pydantic models describing a table and its fields,
and the registry of every table exposed by the IMS MCP server. The registry
drives tool generation and input validation; adding a table means adding one
entry to ``TABLES``.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


# Keys that carry operation metadata rather than column data
RESERVED_KEYS = frozenset({"id", "limit", "offset", "order_by", "search"})


class FieldType(str, Enum):
    """Column types understood by the validator and the tool generator."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    UUID = "uuid"
    DATE = "date"
    TIMESTAMP = "timestamp"
    STRING_ARRAY = "string_array"
    JSON = "json"


class Field(BaseModel):
    """A single column of a table."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType
    description: str
    required: bool = False  # only enforced on create
    enum: Optional[Tuple[str, ...]] = None

    @field_validator("name")
    @classmethod
    def validate_name_not_reserved(cls, value: str) -> str:
        """Reject field names that collide with operation metadata keys."""
        if value in RESERVED_KEYS:
            raise ValueError(f"'{value}' is reserved and cannot be declared as a field")
        return value

    @model_validator(mode="after")
    def validate_enum_type(self):
        """Enumerations are only meaningful on string fields."""
        if self.enum is not None:
            if self.type != FieldType.STRING:
                raise ValueError(
                    f"Field '{self.name}' declares an enum but has type '{self.type.value}'"
                )
            if not self.enum:
                raise ValueError(f"Field '{self.name}' declares an empty enum")
        return self


class TableSchema(BaseModel):
    """One entity type: its storage name, tool naming, and columns.

    Every table also has an implicit ``id`` uuid primary key which is never
    listed in ``fields``.
    """

    model_config = ConfigDict(frozen=True)

    table_name: str
    singular: str
    plural: str
    description: str
    fields: Tuple[Field, ...]

    @model_validator(mode="after")
    def validate_unique_field_names(self):
        """Field names must be unique within a table."""
        seen = set()
        for f in self.fields:
            if f.name in seen:
                raise ValueError(
                    f"Table '{self.table_name}' declares field '{f.name}' more than once"
                )
            seen.add(f.name)
        return self

    @property
    def field_map(self) -> Dict[str, Field]:
        return {f.name: f for f in self.fields}

    @property
    def required_fields(self) -> Tuple[Field, ...]:
        return tuple(f for f in self.fields if f.required)

    @property
    def filterable_fields(self) -> Tuple[Field, ...]:
        """Fields exposed as exact-match filters on list operations."""
        return tuple(
            f
            for f in self.fields
            if f.type in (FieldType.UUID, FieldType.BOOLEAN) or f.enum is not None
        )

    @property
    def has_name_field(self) -> bool:
        return any(f.name == "name" for f in self.fields)


# ============================================================
# SALES
# ============================================================

COMPANIES = TableSchema(
    table_name="companies",
    singular="company",
    plural="companies",
    description="Top-level record for every business in the pipeline",
    fields=(
        Field(name="name", type=FieldType.STRING, required=True, description="Company name"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Pipeline status",
            enum=(
                "lead", "contacted", "meeting_scheduled", "meeting_complete",
                "auditing", "go", "no_go", "proposal_sent",
                "training", "supporting", "paused", "churned",
            ),
        ),
        Field(name="industry", type=FieldType.STRING, description="Industry (defaults to construction)"),
        Field(name="size", type=FieldType.STRING, description="Description of staff count, e.g. '12 office staff'"),
        Field(name="location", type=FieldType.STRING, description="Suburb or city"),
        Field(name="website", type=FieldType.STRING, description="Company website"),
        Field(
            name="source",
            type=FieldType.STRING,
            description="How you found them",
            enum=(
                "referral", "cold_walk_in", "cold_call", "cold_email",
                "linkedin", "inbound", "networking_event",
            ),
        ),
        Field(name="lost_reason", type=FieldType.STRING, description="Why they dropped out of the pipeline"),
        Field(name="notes", type=FieldType.STRING, description="General notes"),
    ),
)

CONTACTS = TableSchema(
    table_name="contacts",
    singular="contact",
    plural="contacts",
    description="People at prospect and client companies",
    fields=(
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="name", type=FieldType.STRING, required=True, description="Full name"),
        Field(name="role_title", type=FieldType.STRING, description="Job title, e.g. 'Senior Estimator'"),
        Field(name="role_description", type=FieldType.STRING, description="What they actually do day to day"),
        Field(name="email", type=FieldType.STRING, description="Email address"),
        Field(name="has_email", type=FieldType.BOOLEAN, description="Whether they have an email at all"),
        Field(name="phone", type=FieldType.STRING, description="Phone number"),
        Field(name="is_decision_maker", type=FieldType.BOOLEAN, description="Whether this person signs off on purchases"),
        Field(name="notes", type=FieldType.STRING, description="Individual notes"),
    ),
)

INTERACTIONS = TableSchema(
    table_name="interactions",
    singular="interaction",
    plural="interactions",
    description="Every touchpoint with a prospect or client, the CRM activity log",
    fields=(
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="contact_id", type=FieldType.UUID, description="Links to contacts (optional)"),
        Field(name="interaction_date", type=FieldType.TIMESTAMP, description="When it happened (defaults to now)"),
        Field(
            name="type",
            type=FieldType.STRING,
            required=True,
            description="What kind of interaction",
            enum=(
                "cold_walk_in", "cold_call", "cold_email", "linkedin_message",
                "warm_intro", "meeting", "follow_up_call", "follow_up_email",
                "site_visit", "other",
            ),
        ),
        Field(name="summary", type=FieldType.STRING, description="What happened in plain language"),
        Field(
            name="outcome",
            type=FieldType.STRING,
            description="Result of the interaction",
            enum=(
                "no_response", "interested", "meeting_booked", "objection_raised",
                "declined", "next_step_agreed", "proposal_requested",
            ),
        ),
        Field(name="next_step", type=FieldType.STRING, description="What was agreed as the next action"),
        Field(name="follow_up_date", type=FieldType.DATE, description="When to follow up"),
        Field(name="notes", type=FieldType.STRING, description="Additional context"),
    ),
)

# ============================================================
# ASSESSMENT
# ============================================================

AUDITS = TableSchema(
    table_name="audits",
    singular="audit",
    plural="audits",
    description="Company-level assessment derived from the audit survey",
    fields=(
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="audit_date", type=FieldType.DATE, description="When the audit was initiated"),
        Field(name="org_chart_received", type=FieldType.BOOLEAN, description="Whether the owner has provided the org chart"),
        Field(name="team_size", type=FieldType.INTEGER, description="Number of staff, derived from org chart"),
        Field(name="surveys_sent", type=FieldType.INTEGER, description="Number of survey links sent"),
        Field(name="surveys_completed", type=FieldType.INTEGER, description="Number of surveys completed"),
        Field(
            name="digital_maturity",
            type=FieldType.STRING,
            description="Overall assessment derived from survey data",
            enum=("low", "medium", "high"),
        ),
        Field(name="current_tools_summary", type=FieldType.STRING, description="Overview of software in use"),
        Field(name="notes", type=FieldType.STRING, description="General audit observations"),
    ),
)

GO_NO_GO_DECISIONS = TableSchema(
    table_name="go_no_go_decisions",
    singular="go_no_go_decision",
    plural="go_no_go_decisions",
    description="Structured decision framework applied after the audit",
    fields=(
        Field(name="audit_id", type=FieldType.UUID, required=True, description="Links to audits"),
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(
            name="decision",
            type=FieldType.STRING,
            required=True,
            description="The call",
            enum=("go", "no_go", "conditional"),
        ),
        Field(name="decision_date", type=FieldType.DATE, description="When the decision was made"),
        Field(
            name="decision_maker_engagement",
            type=FieldType.STRING,
            description="How engaged is the person who signs cheques",
            enum=("high", "medium", "low"),
        ),
        Field(name="budget_confirmed", type=FieldType.BOOLEAN, description="Whether they can afford the engagement"),
        Field(
            name="team_readiness",
            type=FieldType.STRING,
            description="Based on audit and survey data",
            enum=("high", "medium", "low"),
        ),
        Field(
            name="champion_strength",
            type=FieldType.STRING,
            description="How strong the internal champion is",
            enum=("strong", "moderate", "weak", "none"),
        ),
        Field(
            name="technical_feasibility",
            type=FieldType.STRING,
            description="Can their workflows be AI-integrated",
            enum=("high", "medium", "low"),
        ),
        Field(
            name="timeline_alignment",
            type=FieldType.STRING,
            description="Are their expectations realistic",
            enum=("aligned", "tight", "unrealistic"),
        ),
        Field(name="estimated_roi", type=FieldType.STRING, description="Rough estimate of time savings"),
        Field(name="risk_factors", type=FieldType.STRING, description="Anything that could derail the engagement"),
        Field(name="decision_rationale", type=FieldType.STRING, description="Written explanation of why go or no-go"),
        Field(name="recommended_package", type=FieldType.STRING, description="Which pricing tier fits"),
        Field(name="estimated_hours_per_week", type=FieldType.NUMBER, description="Calculated from novel MCPs, Skills, and employees"),
        Field(name="estimated_value", type=FieldType.NUMBER, description="Estimated engagement value in AUD"),
    ),
)

CAPACITY = TableSchema(
    table_name="capacity",
    singular="capacity_record",
    plural="capacity_records",
    description="Internal team bandwidth tracking for Go/No-Go decisions",
    fields=(
        Field(name="team_member", type=FieldType.STRING, required=True, description="Name of internal team member"),
        Field(name="role", type=FieldType.STRING, description="Their role at PromptAI"),
        Field(name="total_hours_per_week", type=FieldType.NUMBER, required=True, description="Total available hours per week"),
        Field(name="allocated_hours_per_week", type=FieldType.NUMBER, description="Hours already committed to active engagements"),
        Field(name="notes", type=FieldType.STRING, description="Context or constraints"),
    ),
)

PROPOSALS = TableSchema(
    table_name="proposals",
    singular="proposal",
    plural="proposals",
    description="Formal proposals sent after a Go decision",
    fields=(
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="go_no_go_id", type=FieldType.UUID, required=True, description="Links to go_no_go_decisions"),
        Field(name="package", type=FieldType.STRING, description="Which package or tier"),
        Field(name="value", type=FieldType.NUMBER, description="Proposed dollar amount in AUD"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Where the proposal stands",
            enum=("draft", "sent", "under_review", "accepted", "rejected", "expired"),
        ),
        Field(name="sent_date", type=FieldType.DATE, description="When it was sent"),
        Field(name="modifications_requested", type=FieldType.STRING, description="Any changes the prospect asked for"),
        Field(name="accepted_date", type=FieldType.DATE, description="When they said yes"),
        Field(name="notes", type=FieldType.STRING, description="Additional context"),
    ),
)

# ============================================================
# DELIVERY
# ============================================================

ENGAGEMENTS = TableSchema(
    table_name="engagements",
    singular="engagement",
    plural="engagements",
    description="Active client contracts, created when a proposal is accepted",
    fields=(
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="proposal_id", type=FieldType.UUID, required=True, description="Links to proposals"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Delivery stage",
            enum=("training", "supporting", "paused", "completed", "cancelled"),
        ),
        Field(name="package", type=FieldType.STRING, description="Package name"),
        Field(name="value", type=FieldType.NUMBER, description="Contract value in AUD"),
        Field(name="staff_count", type=FieldType.INTEGER, description="Number of staff included"),
        Field(name="training_hours_per_staff", type=FieldType.NUMBER, description="Training hours per staff member"),
        Field(name="mcps_to_build", type=FieldType.INTEGER, description="Number of MCPs to be built"),
        Field(name="skills_to_build", type=FieldType.INTEGER, description="Number of Skills to be built"),
        Field(name="reporting_terms", type=FieldType.STRING, description="Terms of monthly reporting"),
        Field(name="support_terms", type=FieldType.STRING, description="Terms of support services"),
        Field(name="start_date", type=FieldType.DATE, description="When work begins"),
        Field(name="end_date", type=FieldType.DATE, description="When the contract ends"),
        Field(name="milestone_dates", type=FieldType.JSON, description="Key milestone dates (JSON)"),
        Field(name="milestone_kpis", type=FieldType.JSON, description="KPIs tied to each milestone (JSON)"),
        Field(name="claude_workspace_id", type=FieldType.STRING, description="Their Claude workspace reference"),
        Field(name="claude_plan_type", type=FieldType.STRING, description="Type of Claude plan (e.g. Team, Enterprise)"),
        Field(name="claude_plan_setup", type=FieldType.BOOLEAN, description="Whether Claude is configured"),
        Field(name="num_licenses", type=FieldType.INTEGER, description="Number of Claude licenses"),
        Field(name="notes", type=FieldType.STRING, description="General engagement notes"),
    ),
)

CLAUDE_LICENSES = TableSchema(
    table_name="claude_licenses",
    singular="claude_license",
    plural="claude_licenses",
    description="Individual Claude licenses assigned to client staff",
    fields=(
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="contact_id", type=FieldType.UUID, description="Links to contacts"),
        Field(name="email", type=FieldType.STRING, required=True, description="Email address the license is assigned to"),
        Field(
            name="license_status",
            type=FieldType.STRING,
            description="Whether the license is active",
            enum=("active", "suspended", "revoked"),
        ),
    ),
)

MCPS = TableSchema(
    table_name="mcps",
    singular="mcp",
    plural="mcps",
    description="Registry of all MCP servers built and their deployments",
    fields=(
        Field(name="name", type=FieldType.STRING, required=True, description="MCP server name"),
        Field(name="description", type=FieldType.STRING, description="What this MCP connects to and does"),
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="built_date", type=FieldType.DATE, description="When it was built"),
        Field(name="deployed", type=FieldType.BOOLEAN, description="Whether it is currently deployed"),
        Field(name="deployed_to_accounts", type=FieldType.JSON, description="Which accounts/workspaces it is deployed to (JSON array)"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Current state",
            enum=("in_development", "deployed", "deprecated"),
        ),
        Field(name="notes", type=FieldType.STRING, description="Additional context"),
    ),
)

SKILLS_FILES = TableSchema(
    table_name="skills_files",
    singular="skills_file",
    plural="skills_files",
    description="Registry of all Skills files built and their deployments",
    fields=(
        Field(name="name", type=FieldType.STRING, required=True, description="Skills file name"),
        Field(name="description", type=FieldType.STRING, description="What this Skills file does"),
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="built_date", type=FieldType.DATE, description="When it was built"),
        Field(name="deployed", type=FieldType.BOOLEAN, description="Whether it is currently deployed"),
        Field(name="deployed_to_accounts", type=FieldType.JSON, description="Which accounts/workspaces it is deployed to (JSON array)"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Current state",
            enum=("in_development", "deployed", "deprecated"),
        ),
        Field(name="notes", type=FieldType.STRING, description="Additional context"),
    ),
)

CONTACT_TASKS = TableSchema(
    table_name="contact_tasks",
    singular="contact_task",
    plural="contact_tasks",
    description="What each person does day to day, baseline for training and ROI measurement",
    fields=(
        Field(name="contact_id", type=FieldType.UUID, required=True, description="Links to contacts, who does this task"),
        Field(name="engagement_id", type=FieldType.UUID, description="Links to engagements"),
        Field(name="task_name", type=FieldType.STRING, required=True, description="Short name, e.g. 'Prepare cost estimates'"),
        Field(name="task_description", type=FieldType.STRING, description="Detailed description of what the task involves"),
        Field(name="software_used", type=FieldType.STRING, description="Tools currently used, e.g. 'Excel, Buildsoft, email'"),
        Field(
            name="frequency",
            type=FieldType.STRING,
            description="How often they do it",
            enum=("daily", "weekly", "monthly", "per_project", "ad_hoc"),
        ),
        Field(name="time_before_ai", type=FieldType.INTEGER, description="How long this task currently takes (minutes)"),
        Field(name="time_after_ai", type=FieldType.INTEGER, description="How long this task takes after AI (minutes)"),
        Field(name="issues_before_ai", type=FieldType.STRING, description="Key issues with the non-AI workflow"),
        Field(name="issues_after_ai", type=FieldType.STRING, description="Key issues with the AI-assisted workflow"),
        Field(name="linked_skills", type=FieldType.STRING_ARRAY, description="Skills file names relevant to this task"),
        Field(name="linked_mcp_connections", type=FieldType.STRING_ARRAY, description="MCP connections relevant to this task"),
        Field(name="notes", type=FieldType.STRING, description="Observations and context"),
    ),
)

SURVEY_RESPONSES = TableSchema(
    table_name="survey_responses",
    singular="survey_response",
    plural="survey_responses",
    description="Audit and pre-training survey answers",
    fields=(
        Field(name="contact_id", type=FieldType.UUID, description="Links to contacts"),
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(
            name="survey_type",
            type=FieldType.STRING,
            required=True,
            description="Which survey",
            enum=("audit", "pre_training"),
        ),
        Field(name="survey_sent", type=FieldType.BOOLEAN, description="Whether the survey link has been sent"),
        Field(name="survey_sent_date", type=FieldType.DATE, description="When it was sent"),
        Field(name="survey_completed", type=FieldType.BOOLEAN, description="Whether they have finished it"),
        Field(name="survey_completed_date", type=FieldType.DATE, description="When they completed it"),
        Field(name="question", type=FieldType.STRING, required=True, description="The survey question text"),
        Field(name="answer", type=FieldType.STRING, description="Their response"),
    ),
)

TRAINING_LOG = TableSchema(
    table_name="training_log",
    singular="training_log_entry",
    plural="training_log_entries",
    description="Per-person, per-session scheduling and delivery notes",
    fields=(
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="contact_id", type=FieldType.UUID, required=True, description="Links to contacts"),
        Field(name="session_number", type=FieldType.INTEGER, required=True, description="Which session in the programme"),
        Field(name="title", type=FieldType.STRING, description="Session name, e.g. 'Claude Fundamentals'"),
        Field(name="scheduled_date", type=FieldType.DATE, description="When it is planned"),
        Field(name="completed_date", type=FieldType.DATE, description="When it actually happened"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Where the session stands",
            enum=("scheduled", "completed", "cancelled", "rescheduled"),
        ),
        Field(name="delivered_by", type=FieldType.STRING, description="Who ran the session"),
        Field(name="location", type=FieldType.STRING, description="On-site, virtual, specific address"),
        Field(name="attended", type=FieldType.BOOLEAN, description="Whether this person attended"),
        Field(name="session_notes", type=FieldType.STRING, description="How the session went: progress, struggles, follow-ups"),
    ),
)

SUPPORT_TICKETS = TableSchema(
    table_name="support_tickets",
    singular="support_ticket",
    plural="support_tickets",
    description="Support requests from clients: requests, resolution, and hours",
    fields=(
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="contact_id", type=FieldType.UUID, description="Links to contacts (who raised the request)"),
        Field(name="request_date", type=FieldType.TIMESTAMP, description="When the request came in (defaults to now)"),
        Field(
            name="category",
            type=FieldType.STRING,
            description="Type of support",
            enum=(
                "mcp_issue", "skill_issue", "claude_config", "troubleshooting",
                "training_request", "ad_hoc_support", "other",
            ),
        ),
        Field(name="description", type=FieldType.STRING, description="What was requested"),
        Field(name="resolution", type=FieldType.STRING, description="What was done to resolve it"),
        Field(
            name="status",
            type=FieldType.STRING,
            description="Where the ticket stands",
            enum=("open", "in_progress", "resolved", "closed"),
        ),
        Field(name="hours_spent", type=FieldType.NUMBER, description="Time spent on this ticket"),
        Field(name="handled_by", type=FieldType.STRING, description="Who handled it"),
        Field(name="resolved_date", type=FieldType.TIMESTAMP, description="When it was resolved"),
        Field(name="notes", type=FieldType.STRING, description="Additional context"),
    ),
)

# ============================================================
# MEASUREMENT
# ============================================================

AI_USAGE = TableSchema(
    table_name="ai_usage",
    singular="ai_usage_record",
    plural="ai_usage_records",
    description="Token usage per person per company, powers monthly reports and trend analysis",
    fields=(
        Field(name="engagement_id", type=FieldType.UUID, required=True, description="Links to engagements"),
        Field(name="company_id", type=FieldType.UUID, required=True, description="Links to companies"),
        Field(name="contact_id", type=FieldType.UUID, required=True, description="Links to contacts, which individual"),
        Field(name="usage_date", type=FieldType.DATE, required=True, description="Date of usage record"),
        Field(name="tokens_used", type=FieldType.INTEGER, required=True, description="Number of tokens consumed"),
        Field(name="notes", type=FieldType.STRING, description="Context or observations"),
    ),
)


TABLES: Tuple[TableSchema, ...] = (
    # Sales
    COMPANIES,
    CONTACTS,
    INTERACTIONS,
    # Assessment
    AUDITS,
    GO_NO_GO_DECISIONS,
    CAPACITY,
    PROPOSALS,
    # Delivery
    ENGAGEMENTS,
    CLAUDE_LICENSES,
    MCPS,
    SKILLS_FILES,
    CONTACT_TASKS,
    SURVEY_RESPONSES,
    TRAINING_LOG,
    SUPPORT_TICKETS,
    # Measurement
    AI_USAGE,
)


def get_table(table_name: str) -> Optional[TableSchema]:
    """Look up a registered table by its storage name."""
    for table in TABLES:
        if table.table_name == table_name:
            return table
    return None
