"""Background job worker for meeting transcription, summaries, and card extraction."""
