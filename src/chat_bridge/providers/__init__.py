"""Provider adapters for the native and OpenAI-compatible families."""
