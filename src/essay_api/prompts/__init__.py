"""
Prompt templates for the essay endpoints.

Each ``<name>.txt`` file is a template loaded by essay_api.utils.prompts.TemplateStore.
"""
