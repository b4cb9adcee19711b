"""
Job storage, remote gateways, the lifecycle state machine and the scheduler.
"""
