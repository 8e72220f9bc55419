"""
ShootingStar: starred email to task pipeline.

A small worker service that:
- Fetches starred emails from Gmail
- Extracts a GTD task from each using the Claude CLI
- Normalizes labels against the approved taxonomy
- Creates the task in Todoist, or queues the email for human review
"""
