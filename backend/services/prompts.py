"""Prompt text for vision analysis requests."""

from typing import List, Dict, Any

SYSTEM_PROMPT = (
    "You are a professional photo editing expert, aesthetic evaluator, "
    "and photography advisor."
)

ANALYSIS_TEMPLATE = """
Analyze this photo.

User request: "{query}"

Return in this structure:

📌 Summary (1–2 lines)
📌 Aesthetic Score (0–100)
📌 Editing Style (cinematic, pastel, warm tones, moody, HDR, retro, clean)
📌 Suggested Filters (VSCO or Lightroom style names)
📌 Editing adjustments:
   - Exposure
   - Contrast
   - Temperature
   - Highlights
   - Shadows
   - Sharpness
   - Vibrance/Saturation
📌 Composition & Cropping Tips
📌 Mood keywords (5–8)
📌 3 Caption ideas
📌 10 Hashtags
"""

GUIDANCE_TEMPLATE = 'User request: "{query}" (No image provided). Return general guidance.'


def render_analysis_prompt(query: str) -> str:
    return ANALYSIS_TEMPLATE.format(query=query)


def render_guidance_prompt(query: str) -> str:
    return GUIDANCE_TEMPLATE.format(query=query)


def build_messages(query: str, image_data_url: str = None) -> List[Dict[str, Any]]:
    """
    Build the chat messages for a vision analysis call.

    With an image the user turn carries the image followed by the structured
    analysis prompt; without one it is a plain text turn asking for guidance.
    """
    messages: List[Dict[str, Any]] = [{"role": "system", "content": SYSTEM_PROMPT}]

    if image_data_url:
        messages.append({
            "role": "user",
            "content": [
                {"type": "image_url", "image_url": {"url": image_data_url}},
                {"type": "text", "text": render_analysis_prompt(query)},
            ],
        })
    else:
        messages.append({"role": "user", "content": render_guidance_prompt(query)})

    return messages
