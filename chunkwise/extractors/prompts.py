"""
Prompt templates for the metadata extractors.

Each template is a plain format string so extractor configurations can carry
it verbatim into the cache fingerprint.
"""

from langchain_core.prompts import PromptTemplate


KEYWORD_EXTRACT_TEMPLATE = """{context}

Give {max_keywords} unique keywords for this document.
Format as comma separated.

Keywords:"""

KEYWORD_EXTRACT_PROMPT = PromptTemplate.from_template(KEYWORD_EXTRACT_TEMPLATE)


TITLE_NODE_TEMPLATE = """Context:
{context}

Give a title that summarizes all of the unique entities, titles or themes found in the context.

Title:"""

TITLE_NODE_PROMPT = PromptTemplate.from_template(TITLE_NODE_TEMPLATE)


TITLE_COMBINE_TEMPLATE = """{context}

Based on the above candidate titles and content, what is the comprehensive title for this document?

Title:"""

TITLE_COMBINE_PROMPT = PromptTemplate.from_template(TITLE_COMBINE_TEMPLATE)


QUESTION_EXTRACT_TEMPLATE = """Here is the context:
{context}

Given the contextual information, generate {num_questions} questions this context can provide specific answers to which are unlikely to be found elsewhere.

Higher-level summaries of surrounding context may be provided as well. Try using these summaries to generate better questions that this context can answer.

Questions:"""

QUESTION_EXTRACT_PROMPT = PromptTemplate.from_template(QUESTION_EXTRACT_TEMPLATE)


SUMMARY_EXTRACT_TEMPLATE = """Here is the content of the section:
{context}

Summarize the key topics and entities of the section.

Summary:"""

SUMMARY_EXTRACT_PROMPT = PromptTemplate.from_template(SUMMARY_EXTRACT_TEMPLATE)


def build_prompt(template: str, required: set[str]) -> PromptTemplate:
    """
    Build a prompt from a custom template string.

    Args:
        template: Format string.
        required: Variables the template must reference.

    Raises:
        ValueError: If a required variable is missing from the template.
    """
    prompt = PromptTemplate.from_template(template)
    missing = required - set(prompt.input_variables)
    if missing:
        raise ValueError(f"Prompt template is missing variables: {sorted(missing)}")
    return prompt
