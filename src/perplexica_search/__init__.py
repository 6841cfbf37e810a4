"""
perplexica-search - Resilient batch client for the Perplexica search API.

Sends queries to a self-hosted Perplexica instance, retries empty or failed
answers with backoff, and runs large query batches with resumable CSV
checkpoints.
"""

__version__ = "0.1.0"
__app_name__ = "perplexica-search"
