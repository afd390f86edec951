"""
Concrete provisioning steps.

Every module in this package registers its steps with the StepRegistry on
import; the orchestrator imports them all.
"""
