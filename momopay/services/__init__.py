from momopay.services.status_poller import PollHandle, PollPolicy, PollResult, PollState, StatusPoller

__all__ = ['StatusPoller', 'PollPolicy', 'PollResult', 'PollState', 'PollHandle']
