# CUI // SP-PROPIN
"""RFX service layer for HealthRFP.

Modules:
    errors              — exception hierarchy shared by every layer
    document_processor  — upload intent (presigned PUT) and upload completion
    text_extractor      — Textract / local PDF+DOCX text extraction
    llm_bridge          — completion service wrapping the LLM router
    prompts             — bid decision, draft and compliance prompt builders
    response_parser     — BID/NO_BID, STATUS/ISSUES/RECOMMENDATIONS, score
    response_archiver   — assemble the final response and write it to storage
"""
