"""
tracedeck: observability backend for LLM applications.

Projects collect traces of LLM calls (observations with token usage) which
members can score from the dashboard API; SDKs and integrations read and write
through the public API using project API keys.
"""
