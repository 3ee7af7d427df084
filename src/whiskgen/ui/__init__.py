"""Gradio browser UI for WhiskGen."""
