"""Prompt templates and fixed user-visible strings for the study assistant."""

from .schemas import AnalysisKind

SYSTEM_INSTRUCTION = """
You are a World-Class Cybersecurity Law Tutor and Exam Coach.
Your goal is to help the user master course materials (CFAA, GDPR, FTC Act, Data Breach Liability, etc.) and write A+ law exam answers.

**CRITICAL INSTRUCTION - STRICT GROUNDING:**
You must ONLY use the provided "Knowledge Bank" (Context) to answer.
The Knowledge Bank is everything between "--- BEGIN KNOWLEDGE BANK (CONTEXT) ---" and "--- END KNOWLEDGE BANK ---".
Do NOT use outside knowledge unless explicitly asked to explain a general concept not found in the text.
If the answer is not in the provided materials, explicitly state: "This information is not present in the provided Knowledge Bank."

TEACHING APPROACH:
1. **Identify the Core Rule**: Extract the governing principle, statute, or doctrine from the materials.
2. **Explain in Plain English**: Break it down with real-world analogies.
3. **Case & Policy Context**: Mention key cases or policy debates found in the materials.
4. **Organize**: Use hierarchical outlining (Roman numerals, bullet points).
5. **Exam Lens**: Explain how to spot this issue on an exam and how to structure the answer (IRAC).

STYLE GUIDELINES:
- Use **Bold** for rules and key terms.
- Use > Blockquotes for "Rule Statements" suitable for memorization.
- Be precise with legal terminology but accessible in explanation.
""".strip()


BEGIN_SENTINEL = "--- BEGIN KNOWLEDGE BANK (CONTEXT) ---"
END_SENTINEL = "--- END KNOWLEDGE BANK ---"
EXCLUSIVE_USE_INSTRUCTION = "Use the above materials exclusively to answer the following."
MATERIAL_LABEL = "[MATERIAL {index}: {category} - {name}]"


OUTLINE_PROMPT = """
Analyze the entire Knowledge Bank. Create a "Metacognitive Class Outline" structured like an A+ law student's notes.
Follow this structure:
I. [Major Topic]
  A. [Sub-topic]
     1. [Rule/Doctrine]
        - Explanation (from materials)
        - Key Case/Statute (from materials)
Include a "Common Pitfalls" section at the end.
""".strip()


PATTERNS_PROMPT = """
**EXAM PATTERN ANALYSIS**
Analyze all Exams and Materials in the Knowledge Bank to identify structural patterns and testing frequencies.

Provide the output in these sections:
1. **Most Tested Subjects**: Rank the top 5 topics by how frequently they appear in the materials.
2. **Recurring Fact Patterns**: Describe the specific fact scenarios that trigger liability (e.g., "The Disgruntled Employee," "The Unsecured Vendor," "The Ransomware Attack").
3. **Issue Spotting Checklist**: Create a master checklist of issues that MUST be spotted if triggered by facts.
4. **Professor's Focus**: Identify any specific nuances, cases, or policy arguments the professor seems to emphasize repeatedly.
""".strip()


RULES_PROMPT = """
**MASTER RULE BANK**
Create a comprehensive Rule Bank for **every single legal issue** identified in the Knowledge Bank.

For EACH issue, provide a strict entry in this format:

### [Issue Name]
**Rule**: [The concise, black-letter rule or statute section]
**Elements**:
1. [Element 1]
2. [Element 2]
...
**Key Case**: [Case name cited in materials]
**Defenses/Exceptions**: [Any valid defenses]

Ensure you cover everything found in the documents, from the CFAA to State Breach Laws.
""".strip()


ANALYSIS_PROMPTS = {
    AnalysisKind.OUTLINE: OUTLINE_PROMPT,
    AnalysisKind.PATTERNS: PATTERNS_PROMPT,
    AnalysisKind.RULES: RULES_PROMPT,
}


HYPOTHETICAL_PROMPT = """
Create a law school exam hypothetical (fact pattern) regarding: {topic}.
The facts should trigger specific legal issues found in typical Cybersecurity Law exams.
Do NOT provide the answer yet. Just provide the Question.
""".strip()


MODEL_ANSWER_REQUEST = "Please write a model IRAC answer for this hypothetical: {hypothetical}"


TUTOR_EMPTY_RESPONSE = "I'm sorry, I couldn't generate a response regarding that legal concept."
TUTOR_ERROR_MESSAGE = "Sorry, I encountered an error connecting to the Tutor."
ANALYSIS_ERROR_TIP = (
    "Tip: If you uploaded large PDFs (scans), try removing them and adding smaller files. "
    "The API has a size limit for direct uploads."
)
HYPOTHETICAL_EMPTY_RESPONSE = "Could not generate hypothetical."
HYPOTHETICAL_ERROR_MESSAGE = "Error generating hypothetical. Please check your API Key."


__all__ = [
    "ANALYSIS_ERROR_TIP",
    "ANALYSIS_PROMPTS",
    "BEGIN_SENTINEL",
    "END_SENTINEL",
    "EXCLUSIVE_USE_INSTRUCTION",
    "HYPOTHETICAL_EMPTY_RESPONSE",
    "HYPOTHETICAL_ERROR_MESSAGE",
    "HYPOTHETICAL_PROMPT",
    "MATERIAL_LABEL",
    "MODEL_ANSWER_REQUEST",
    "OUTLINE_PROMPT",
    "PATTERNS_PROMPT",
    "RULES_PROMPT",
    "SYSTEM_INSTRUCTION",
    "TUTOR_EMPTY_RESPONSE",
    "TUTOR_ERROR_MESSAGE",
]
