CONTEXT_EXTRACTION_VERSION = "context_v1"

ENGLISH_LEVELS = {"beginner", "intermediate", "advanced", "fluent"}
TONE_STYLES = {"confident", "friendly", "inspiring", "professional", "casual", "humorous"}

PROMPT_TEMPLATE = """You are a context extraction assistant. Extract structured information about a pitch context from the following user description.

User description:
{context_transcript}

Extract the following information if mentioned (return JSON only, no other text):
- audience: who the pitch is for (e.g., "investors", "hiring manager", "customers", "conference audience")
- goal: what the speaker wants to achieve (e.g., "raise funding", "get hired", "book a meeting", "close a sale")
- duration: desired length (e.g., "30 seconds", "1 minute", "3 minutes", "5 minutes", "elevator pitch")
- scenario: type of situation (e.g., "startup investor pitch", "job interview intro", "sales call opener", "conference talk")
- english_level: "beginner", "intermediate", "advanced", or "fluent" (only if mentioned)
- tone_style: "confident", "friendly", "inspiring", "professional", "casual", or "humorous" (only if mentioned)
- constraints: any constraints mentioned (e.g., "no jargon", "non-native audience", "max 1 minute")
- notes_from_user: any additional notes or comments

Return ONLY a valid JSON object with these fields. Use null for fields that are not mentioned. Example:
{
  "audience": "investors",
  "goal": "raise funding",
  "duration": "3 minutes",
  "scenario": "startup investor pitch",
  "english_level": null,
  "tone_style": "confident",
  "constraints": "no technical jargon",
  "notes_from_user": "this is my first attempt"
}"""
