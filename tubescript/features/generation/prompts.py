"""Prompt templates for style analysis and script writing.

The writer prompt is assembled from fixed blocks: persona, structure,
formatting conventions (two variants) and an optional style-guide block.
Per-content-type notes steer the main section without changing the frame.
"""

STYLE_ANALYST_SYSTEM = (
    "You are an expert content style analyst. You study a content creator's "
    "published work and describe how they communicate so another writer can "
    "imitate them."
)

STYLE_ANALYST_PROMPT = """Analyze the content from the following URL and create a style guide that captures the content creator's unique style, including tone, vocabulary, and presentation.

URL: {reference_url}

Style Guide:"""

WRITER_PERSONA = (
    "You are an expert video script writer, known for creating scripts that are "
    "natural, engaging, and sound like a real person talking to their audience. "
    "Your scripts are ready to be used for recording immediately."
)

VOICEOVER_PERSONA = (
    "You are an expert video script writer. Your task is to create a script that "
    "is ready for voiceover. The script should be natural, engaging, and sound "
    "like a real person talking to their audience."
)

REQUEST_BLOCK = """Generate a complete video script based on the following information:

Topic: {topic}
Content Type: {content_type}"""

STRUCTURE_BLOCK = """Your script should have a clear structure:
1.  **Introduction (Hook)**: Grab the viewer's attention in the first 10-15 seconds. State what the video is about and why they should watch.
2.  **Main Content**: Deliver the core message. Break it down into clear, easy-to-follow points.
3.  **Conclusion (Outro)**: Summarize the key takeaways and include a clear call to action (e.g., "like and subscribe," "check out this other video," "leave a comment below")."""

CUED_FORMAT_BLOCK = """Writing Style Guidelines:
-   **Be Conversational**: Write as if you're talking to a friend. Use contractions (e.g., "it's," "you're").
-   **Add Pauses**: Indicate where the speaker should pause for effect, using "(pause)" or "...".
-   **Emphasize Words**: Suggest which words or phrases should be emphasized to add personality.
-   **Include Action/Visual Cues**: Add notes in brackets like "[Show B-roll of...]" or "[Text on screen: ...]" to suggest visuals. This makes the script ready for editing.
-   **Clarity is Key**: Make sure the script is easy to read and understand.

The output should be the script itself, formatted and ready for a creator to read."""

VOICEOVER_FORMAT_BLOCK = """Writing Style Guidelines:
-   **Be Conversational**: Write as if you're talking to a friend. Use contractions (e.g., "it's," "you're").
-   **Spoken Words Only**: Do not include any visual cues, scene directions, or notes like "[B-roll of...]" or "(pause)". Do not add emphasis markers, headings, or speaker labels.

The output should only contain the spoken words of the script."""

STYLE_GUIDE_BLOCK = """Apply the following style guide to the generated script. Pay close attention to the creator's tone, pacing, vocabulary, and common phrases:
{style_guide}"""

CONTENT_TYPE_NOTES = {
    "Vlog": "Keep it personal and in the moment; let the speaker's reactions carry the story.",
    "Tutorial": "Walk through the steps in order and say what the viewer should see after each one.",
    "Commentary": "Lead with a clear opinion, back it with reasons, and acknowledge the other side.",
    "Review": "Cover what it is, what's good, what's not, and end with a clear verdict.",
}
