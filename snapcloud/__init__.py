"""
SnapCloud — natural language to cloud architecture.

Turns a plain-text requirement into an architecture diagram (Mermaid),
a CloudFormation template and a monthly cost estimate, orchestrated as a
durable Temporal workflow.
"""

__version__ = "0.1.0"
