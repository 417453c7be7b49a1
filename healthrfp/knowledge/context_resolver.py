#!/usr/bin/env python3
# CUI // SP-PROPIN
# Controlled by: HealthRFP Portal
# CUI Category: PROPIN
# Distribution: D
# POC: HealthRFP System Administrator
"""Business context, response templates and compliance rules for prompts.

Reads the knowledge base by content_type and turns the entries into the
values the pipeline prompts need:

  business_context  one entry per field, keyed by content_id, value in
                    content_data.value. A field missing from a partially
                    seeded knowledge base falls back on its own.
  templates         "## {title}\\n{content}" blocks joined by blank lines.
  compliance_rules  same shape as templates.

An empty knowledge base (or a storage error) yields the built-in defaults.
None of these lookups ever raise.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import List, Union

logger = logging.getLogger("healthrfp.knowledge.context")

BUSINESS_CONTEXT_FIELDS = (
    "service_regions", "current_capacity", "healthcare_experience",
    "typical_timeline", "minimum_project_size", "current_workload",
    "specialties", "team_size", "certifications",
)


@dataclass
class BusinessContext:
    service_regions: Union[List[str], str] = field(default_factory=list)
    current_capacity: str = ""
    healthcare_experience: str = ""
    typical_timeline: str = ""
    minimum_project_size: str = ""
    current_workload: str = ""
    specialties: Union[List[str], str] = field(default_factory=list)
    team_size: str = ""
    certifications: Union[List[str], str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# Used as a whole when the knowledge base holds no business context at all.
DEFAULT_BUSINESS_CONTEXT = {
    "service_regions": ["North America", "Europe", "Asia Pacific"],
    "current_capacity": "Available - 2 projects can start in Q1 2024",
    "healthcare_experience": "15+ years, 200+ healthcare IT implementations",
    "typical_timeline": "6-12 months for healthcare IT projects",
    "minimum_project_size": "$500K",
    "current_workload": "60% capacity utilization",
    "specialties": ["EHR Implementation", "Patient Portals", "Data Analytics",
                    "HIPAA Compliance"],
    "team_size": "25 healthcare IT specialists",
    "certifications": ["Epic Certified", "Cerner Certified", "HIPAA Compliant"],
}

# Per-field fallbacks for a partially seeded knowledge base.
FIELD_FALLBACKS = {
    "service_regions": ["North America", "Europe"],
    "current_capacity": "Available",
    "healthcare_experience": "10+ years",
    "typical_timeline": "6-12 months",
    "minimum_project_size": "$500K",
    "current_workload": "Moderate",
    "specialties": ["EHR Implementation"],
    "team_size": "20 specialists",
    "certifications": ["Healthcare IT Certified"],
}

DEFAULT_TEMPLATES = """
## Executive Summary Template
We are a leading healthcare IT consulting firm with [EXPERIENCE] years of experience in [SPECIALTIES]. Our team of [TEAM_SIZE] certified professionals has successfully implemented [CERTIFICATIONS] solutions for healthcare organizations across [SERVICE_REGIONS].

## Company Overview Template
Our company specializes in [SPECIALTIES] with deep expertise in healthcare regulations and compliance. We maintain [CERTIFICATIONS] certifications and have a proven track record of delivering projects within [TYPICAL_TIMELINE] timelines.

## Proposed Solution Template
Based on your requirements, we propose a comprehensive solution that leverages our expertise in [SPECIALTIES]. Our approach includes [SPECIFIC_SOLUTION_COMPONENTS] tailored to your organization's needs.

## Timeline Template
Our typical implementation timeline of [TYPICAL_TIMELINE] ensures thorough planning and execution. Key milestones include [MILESTONE_1], [MILESTONE_2], and [MILESTONE_3].

## Team Qualifications Template
Our team of [TEAM_SIZE] includes [CERTIFICATIONS] certified professionals with extensive experience in healthcare IT implementations. Key team members include [TEAM_ROLES_AND_EXPERIENCE].

## Pricing Structure Template
Our pricing is competitive and based on project scope and complexity. We provide transparent pricing with clear deliverables and milestones. Minimum project engagement is [MINIMUM_PROJECT_SIZE].
"""

DEFAULT_COMPLIANCE_RULES = """
## Healthcare Compliance Rules

### HIPAA Compliance
- Must mention HIPAA compliance in healthcare solutions
- Ensure patient data protection and privacy measures
- Include data encryption and access controls
- Reference HIPAA Business Associate Agreements (BAAs)

### FDA Regulations (if applicable)
- For medical device software: FDA 21 CFR Part 820
- For clinical decision support: FDA guidance compliance
- Quality system requirements and documentation

### Healthcare Industry Standards
- HL7 FHIR for data interoperability
- ICD-10 coding standards
- CPT coding for billing systems
- Meaningful Use requirements (if applicable)

### Professional Standards
- Use proper healthcare terminology
- Maintain professional tone throughout
- Include relevant certifications and credentials
- Reference industry best practices

### Regional Compliance
- Only promise services in regions we actually serve
- Include local healthcare regulations where applicable
- Consider time zone and language requirements

### Risk Management
- Address potential implementation risks
- Include mitigation strategies
- Mention disaster recovery and business continuity
- Include change management processes

### Timeline and Capacity
- Ensure realistic timelines based on our capabilities
- Don't overcommit on delivery dates
- Include buffer time for unexpected issues
- Align with our typical project timeline

### Pricing Compliance
- Meet minimum project size requirements
- Provide transparent pricing structure
- Include all necessary components in pricing
- Align with our pricing guidelines
"""


def _value_of(content_data):
    if isinstance(content_data, dict):
        return content_data.get("value")
    return None


class KnowledgeContext:
    """Resolves prompt context from the knowledge base table."""

    def __init__(self, store, table: str):
        self._store = store
        self._table = table

    def _entries(self, content_type: str) -> list:
        try:
            return self._store.scan(self._table, {"content_type": content_type})
        except Exception as exc:
            logger.error("Error reading %s from knowledge base: %s", content_type, exc)
            return []

    def get_business_context(self) -> BusinessContext:
        entries = self._entries("business_context")
        if not entries:
            logger.info("No business context found in knowledge base, using defaults")
            return BusinessContext(**{k: _copy(v) for k, v in DEFAULT_BUSINESS_CONTEXT.items()})

        by_field = {e.get("content_id"): _value_of(e.get("content_data")) for e in entries}
        values = {}
        for name in BUSINESS_CONTEXT_FIELDS:
            value = by_field.get(name)
            values[name] = value if value else _copy(FIELD_FALLBACKS[name])
        return BusinessContext(**values)

    def _joined_block(self, content_type: str, default: str) -> str:
        entries = self._entries(content_type)
        if not entries:
            logger.info("No %s found in knowledge base, using defaults", content_type)
            return default
        blocks = []
        for e in entries:
            data = e.get("content_data")
            body = data.get("content") if isinstance(data, dict) else None
            blocks.append(f"## {e.get('title', '')}\n{body or e.get('description', '')}")
        return "\n\n".join(blocks) or default

    def get_response_templates(self) -> str:
        return self._joined_block("templates", DEFAULT_TEMPLATES)

    def get_compliance_rules(self) -> str:
        return self._joined_block("compliance_rules", DEFAULT_COMPLIANCE_RULES)


def _copy(value):
    return list(value) if isinstance(value, list) else value
