"""Advisor - follow-up chat about a finished analysis report.

The advisor answers questions about one report using OpenAI function
calling. A turn passes through:
- Guardrails: input screening, prompt hardening, tool parameter checks,
  output fact-checking
- Context engineering: truncation, rolling summary, persona hints,
  session memory, tool result caching
- Tools: what-if math, property analysis, knowledge lookup, live data
"""
