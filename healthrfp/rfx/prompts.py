#!/usr/bin/env python3
# CUI // SP-PROPIN
"""Prompt builders for the bid decision, draft generation and compliance stages."""


def _join(value) -> str:
    """Render a list field as a comma-separated string; pass strings through."""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if value is None:
        return ""
    return str(value)


def _content(document: dict, limit: int) -> str:
    return (document.get("content") or "")[:limit]


def build_decision_prompt(document: dict, ctx, content_chars: int = 2000) -> str:
    return f"""Analyze this RFP and recommend bid or no-bid using the provided business context:

CLIENT RFP:
Client: {document.get("client_name", "")}
Region: {document.get("region", "")}
Industry: {document.get("industry", "")}
Content: {_content(document, content_chars)}...

OUR BUSINESS CONTEXT:
Service Regions: {_join(ctx.service_regions)}
Current Capacity: {ctx.current_capacity}
Healthcare Experience: {ctx.healthcare_experience}
Typical Timeline: {ctx.typical_timeline}
Minimum Project Size: {ctx.minimum_project_size}
Current Workload: {ctx.current_workload}
Specialties: {_join(ctx.specialties)}
Team Size: {ctx.team_size}
Certifications: {_join(ctx.certifications)}

DECISION CRITERIA:
1. Regional Coverage: Can we serve this region based on our service regions?
2. Capacity: Do we have availability based on current workload and capacity?
3. Expertise: Do we have relevant healthcare experience and certifications?
4. Timeline: Is the project timeline realistic given our typical timelines?
5. Profitability: Does this meet our minimum project size requirements?

Make your decision based on the ACTUAL business data provided above.
Respond with: BID or NO_BID and brief reasoning citing specific business context factors."""


def build_draft_prompt(document: dict, ctx, templates: str, reasoning: str,
                       content_chars: int = 3000) -> str:
    specialties = _join(ctx.specialties)
    certifications = _join(ctx.certifications)
    return f"""Generate a professional RFP response draft using the provided business context and templates:

CLIENT RFP:
Client: {document.get("client_name", "")}
Region: {document.get("region", "")}
Industry: {document.get("industry", "")}
Requirements: {_content(document, content_chars)}...

OUR BUSINESS CONTEXT:
Service Regions: {_join(ctx.service_regions)}
Healthcare Experience: {ctx.healthcare_experience}
Team Size: {ctx.team_size}
Specialties: {specialties}
Certifications: {certifications}
Typical Timeline: {ctx.typical_timeline}

RESPONSE TEMPLATES:
{templates}

DECISION REASONING:
{reasoning}

REQUIRED SECTIONS:
1. Executive Summary - Highlight our healthcare expertise and relevant experience
2. Company Overview - Emphasize our {specialties} capabilities
3. Proposed Solution - Tailor to specific requirements using our expertise
4. Timeline and Milestones - Based on our typical {ctx.typical_timeline} timeline
5. Pricing Structure - Professional and competitive based on project scope
6. Team Qualifications - Highlight {ctx.team_size} and {certifications}
7. References and Case Studies - Include relevant healthcare implementations

Use the business context data to personalize the response. Make it specific to our actual capabilities and experience.
Keep it professional, concise, and healthcare-focused."""


def build_compliance_prompt(draft_text: str, document: dict, ctx, rules: str) -> str:
    return f"""Review this RFP response for compliance issues using the provided rules and context:

RFP RESPONSE TO REVIEW:
{draft_text}

CLIENT CONTEXT:
Client: {document.get("client_name", "")}
Region: {document.get("region", "")}
Industry: {document.get("industry", "")}

COMPLIANCE RULES:
{rules}

BUSINESS CONTEXT:
Service Regions: {_join(ctx.service_regions)}
Certifications: {_join(ctx.certifications)}
Specialties: {_join(ctx.specialties)}
Team Size: {ctx.team_size}

COMPLIANCE CHECKLIST:
1. **Healthcare Compliance**: HIPAA, FDA, and industry regulations mentioned
2. **Professional Standards**: Healthcare terminology and professional tone
3. **Certification Claims**: Only claim certifications we actually have
4. **Regional Coverage**: Only promise services in regions we serve
5. **Timeline Realism**: Timeline aligns with our typical {ctx.typical_timeline} timeline
6. **Pricing Consistency**: Pricing aligns with our minimum {ctx.minimum_project_size} threshold
7. **Section Completeness**: All required sections present and complete
8. **Technical Accuracy**: Healthcare IT terminology used correctly
9. **Regulatory Compliance**: Mentions relevant healthcare regulations
10. **Risk Management**: Addresses potential risks and mitigation

Provide a detailed compliance review with:
- ✅ PASS or ❌ FAIL for each checklist item
- Specific issues found with line references
- Recommendations for improvement
- Overall compliance status

Format your response as:
STATUS: [COMPLIANT/NEEDS_REVIEW/FAILED]
ISSUES: [List specific issues or "None"]
RECOMMENDATIONS: [Specific improvement suggestions or "None"]"""
