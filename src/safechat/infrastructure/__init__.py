"""
SafeChat Infrastructure Layer

External integrations: database, LLM provider, email, metrics
and error tracking. Adapters implement the safety pipeline's
boundary interfaces.
"""
