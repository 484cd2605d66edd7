"""
Table shapes of the external monitoring database.

Declared on their own ``MetaData`` so they are never part of local migrations; only
the columns the feed reader selects are listed.
"""

from sqlalchemy import Column, DateTime, Float, Integer, MetaData, String, Table, Text

external_metadata = MetaData()

flagged_site_table = Table(
    "sites",
    external_metadata,
    Column("domain", String, primary_key=True),
    Column("type", String),
    Column("site_type", String),
    Column("site_status", String),
    Column("new_url", String),
    Column("distribution_channel", String),
    Column("created_at", DateTime),
)

analysis_report_table = Table(
    "domain_analysis_reports",
    external_metadata,
    Column("id", Integer, primary_key=True),
    Column("analysis_month", String),
    Column("status", String),
    Column("total_domains", Integer),
    Column("created_at", DateTime),
    Column("updated_at", DateTime),
)

analysis_result_table = Table(
    "domain_analysis_results",
    external_metadata,
    Column("id", Integer, primary_key=True),
    Column("report_id", Integer),
    Column("rank", Integer),
    Column("domain", String),
    Column("threat_score", Float),
    Column("total_visits", Integer),
    Column("unique_visitors", Integer),
    Column("global_rank", Integer),
    Column("recommendation", Text),
    Column("site_type", String),
    Column("type_score", Float),
    Column("created_at", DateTime),
)

site_note_table = Table(
    "site_notes",
    external_metadata,
    Column("id", Integer, primary_key=True),
    Column("domain", String),
    Column("note_type", String),
    Column("content", Text),
    Column("created_at", DateTime),
)

detection_result_table = Table(
    "detection_results",
    external_metadata,
    Column("id", Integer, primary_key=True),
    Column("session_id", Integer),
    Column("domain", String),
    Column("url", String),
    Column("title", String),
    Column("final_status", String),
    Column("llm_judgment", String),
    Column("llm_reason", Text),
    Column("source", String),
)
