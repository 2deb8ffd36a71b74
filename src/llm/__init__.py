# src/llm/__init__.py
# ====================
# Text Generation Layer — LinguaRelay
#
#   - client.py            shared AsyncOpenAI instance, SDK error normalization
#   - responses_client.py  one Responses API call → GenerationResult
#   - extraction.py        ordered plain-text extraction strategies
