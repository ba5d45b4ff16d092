"""
Two-tweet thread drafting for a stored job.

The LLM answers in free text; parse_thread_response pulls the primary
(hook) tweet and the reply tweet out of it, falling back to splitting the
text in two when the markers are missing.
"""
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from app.ai_service import AIService, get_ai_service
from core.models import ContentGenerationResult, ThreadContent

logger = logging.getLogger(__name__)

TEMPERATURE = 0.8
DESCRIPTION_PREVIEW_CHARS = 500
QUOTA_MESSAGE = "AI Quota exceeded. Please try again in a few minutes or switch models."

# (provider, model, display name, OpenRouter slug)
AI_MODELS: List[Tuple[str, str, str, str]] = [
    ("google", "gemini-2.5-flash", "Gemini 2.5 Flash", "google/gemini-2.5-flash"),
    ("openai", "gpt-4o", "GPT-4o", "openai/gpt-4o"),
    ("openai", "gpt-4o-mini", "GPT-4o Mini", "openai/gpt-4o-mini"),
    ("anthropic", "claude-3-5-sonnet-20241022", "Claude 3.5 Sonnet", "anthropic/claude-3.5-sonnet"),
    ("anthropic", "claude-3-5-haiku-20241022", "Claude 3.5 Haiku", "anthropic/claude-3.5-haiku"),
    ("google", "gemini-2.0-flash", "Gemini 2.0 Flash", "google/gemini-2.0-flash-001"),
    ("google", "gemini-1.5-pro", "Gemini 1.5 Pro", "google/gemini-pro-1.5"),
    ("google", "gemini-1.5-flash", "Gemini 1.5 Flash", "google/gemini-flash-1.5"),
]

AI_PROVIDERS = ("openai", "anthropic", "google")

THREAD_GENERATION_PROMPT = """You are a viral content expert for @TheOrbitJobs on X (Twitter). Transform tech job postings into engaging threads that highlight the most compelling details.

CRITICAL RULES:
1. Primary tweet = HOOK (attention-grabbing, NO link)
2. Reply tweet = application link
3. Primary tweet: max 260 characters
4. Reply tweet: max 230 characters
5. Extract and prioritize from job description:
   - Salary range (always lead with this if available)
   - Required skills (focus on 2-3 most important/in-demand)
   - Key tech stack (popular technologies only)
   - Benefits/perks mentioned (equity, unlimited PTO, learning budget, etc)
   - Company prestige/stage (unicorn, Series X, Fortune 500)
   - Remote/location flexibility
   - Seniority level (Senior, Staff, Principal, Lead)
6. Use power words: "Hiring", "Remote", "Stack", currency symbols
7. Scannable format: emojis sparingly, strategic line breaks
8. Tone: human and conversational, not corporate

CONTENT EXTRACTION:
From job description, identify and rank by impact:
1. Compensation (base + equity + bonus)
2. Must-have skills (look for "required" or "must have")
3. Differentiators (unique benefits, prestigious company, rare tech)
4. Growth opportunities (mentions of "mentorship", "leadership", "impact")
5. Work environment (remote policy, team size, autonomy level)

THREAD STRUCTURE:

Primary Tweet (Hook):
- Open with highest value: salary > company prestige > role level
- Include 2-3 key technical skills (prioritize in-demand tech)
- Add remote status if mentioned
- Include one standout detail from description (equity, team, product)
- Create curiosity gap - make them want details
- NO LINK

Reply Tweet:
- "Apply here: [job_link]"
- Add 1-2 unique selling points from description not in primary tweet
- Include relevant hashtags (#RemoteJobs #[PrimaryTech]Jobs #TechJobs)

EXAMPLES:

Example 1 (Salary + Skills focus):
Primary: "💰 $180K-$220K + equity | Senior React Engineer at Stripe

Stack: React, TypeScript, Node.js, PostgreSQL
Fully remote 🌍

Building payment infrastructure for millions of businesses. Seeking someone who's shipped production React at scale.

Apply below 👇"

Reply: "Apply here: [link]

#RemoteJobs #ReactJobs #TechJobs"

Example 2 (Prestige + Rare skill focus):
Primary: "🔥 Meta hiring Staff ML Engineer

Need: PyTorch, distributed training, LLM fine-tuning
$220K-$300K + RSUs

Remote-friendly. Working on next-gen AI products used by 3B+ people.

Apply below 👇"

Reply: "Apply here: [link]

#RemoteJobs #MLJobs #TechJobs"

IMPORTANT:
- If salary not available, lead with company name or unique tech
- Extract actual benefits mentioned, don't invent them
- Match tone to job level (Senior = more technical, Junior = growth-focused)
- Only include skills explicitly mentioned in description
- If description lacks details, focus on role title + company + stack

NOTE: The job posts should not be personalized as these are job postings for companies.

Now generate a thread for this job:"""


class UnsupportedModelError(ValueError):
    """Provider/model pair is not in AI_MODELS."""


def list_models() -> List[Dict[str, str]]:
    return [
        {"provider": provider, "model": model, "display_name": display_name}
        for provider, model, display_name, _ in AI_MODELS
    ]


def resolve_model(provider: str, model: str) -> str:
    """OpenRouter slug for a provider/model pair."""
    if provider not in AI_PROVIDERS:
        raise UnsupportedModelError(f"Unsupported AI provider: {provider}")
    for p, m, _, slug in AI_MODELS:
        if p == provider and m == model:
            return slug
    raise UnsupportedModelError(f"Unsupported model for {provider}: {model}")


def format_job_for_prompt(job: Dict[str, Any]) -> str:
    salary_min = job.get("salary_min")
    salary_max = job.get("salary_max")
    currency = job.get("salary_currency") or ""

    context = f"Job Title: {job.get('title', '')}\n"
    context += f"Company: {job.get('company', '')}\n"

    if salary_min and salary_max:
        context += f"Salary: ${salary_min:,}-${salary_max:,} {currency}\n"
    elif salary_min:
        context += f"Salary: ${salary_min:,}+ {currency}\n"

    context += f"Remote: {'Yes' if job.get('remote_allowed') else 'No'}\n"
    context += f"Location: {job.get('location') or 'Not specified'}\n"

    skills = job.get("required_skills") or []
    if skills:
        context += f"Skills: {', '.join(skills)}\n"

    description = job.get("description")
    if description:
        context += f"\nDescription:\n{description[:DESCRIPTION_PREVIEW_CHARS]}...\n"

    context += f"\nApplication Link: {job.get('apply_url', '')}"
    return context


def _split_line(line: str) -> Tuple[str, str]:
    """Split one line at the word boundary nearest its middle."""
    text = line.strip()
    middle = len(text) // 2
    spaces = [i for i, ch in enumerate(text) if ch.isspace()]
    if spaces:
        cut = min(spaces, key=lambda i: abs(i - middle))
    else:
        cut = max(middle, 1)
    return text[:cut].strip(), text[cut:].strip()


def parse_thread_response(text: str) -> ThreadContent:
    """
    Extract primary and reply tweets from free-form model output.

    A line mentioning "primary" or "hook" starts the primary section, a line
    mentioning "reply" starts the reply section; marker lines are dropped.
    Hashtag lines and lines mentioning "apply" never go into the primary.
    """
    lines = [line for line in (text or "").split("\n") if line.strip()]

    primary: List[str] = []
    reply: List[str] = []
    mode: Optional[str] = None

    for line in lines:
        lowered = line.lower()
        if "primary" in lowered or "hook" in lowered:
            mode = "primary"
            continue
        if "reply" in lowered:
            mode = "reply"
            continue

        if mode == "primary" and not line.startswith("#") and "apply" not in lowered:
            primary.append(line)
        elif mode == "reply":
            reply.append(line)

    primary_text = "\n".join(primary).strip()
    reply_text = "\n".join(reply).strip()

    if not primary_text or not reply_text:
        if len(lines) >= 2:
            half = len(lines) // 2
            primary_text = "\n".join(lines[:half]).strip()
            reply_text = "\n".join(lines[half:]).strip()
        elif lines:
            primary_text, reply_text = _split_line(lines[0])
        else:
            primary_text, reply_text = "", ""

    return ThreadContent(primary_tweet=primary_text, reply_tweet=reply_text)


async def generate_job_thread(
    job: Dict[str, Any],
    provider: str,
    model: str,
    ai_service: Optional[AIService] = None,
) -> ContentGenerationResult:
    """
    Draft a thread for the job.

    Raises:
        UnsupportedModelError for an unknown provider/model
        RuntimeError with QUOTA_MESSAGE when the LLM quota is exhausted
        RuntimeError carrying the upstream message otherwise
    """
    slug = resolve_model(provider, model)
    ai_service = ai_service or get_ai_service()
    start_time = time.time()

    prompt = f"{THREAD_GENERATION_PROMPT}\n\n{format_job_for_prompt(job)}"

    try:
        result = await ai_service.complete(
            messages=[{"role": "user", "content": prompt}],
            model=slug,
            temperature=TEMPERATURE,
        )
    except Exception as e:
        logger.error(f"[content_generator] Content generation failed: {e}")
        if "quota" in str(e).lower():
            raise RuntimeError(QUOTA_MESSAGE) from e
        raise RuntimeError(str(e) or "Failed to generate content. Please try again.") from e

    content = parse_thread_response(result["content"])
    generation_time = int((time.time() - start_time) * 1000)

    return ContentGenerationResult(
        content=content,
        model_used=f"{provider}/{model}",
        tokens_used=result.get("tokens_used", 0),
        generation_time=generation_time,
    )
