SUBMISSION_STATUS_VALUES = ['partial', 'complete']
ACTION_PLAN_SOURCE_VALUES = ['fallback', 'generated']
