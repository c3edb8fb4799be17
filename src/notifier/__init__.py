"""GitHub Actions notifier posting pull request and workflow events to Slack.

This package provides:
- GitHub webhook payload parsing into typed events
- GitHub login to Slack user resolution
- Team based Slack channel routing
- Slack message formatting per event type
- Event handlers wiring the above for each action type
"""
