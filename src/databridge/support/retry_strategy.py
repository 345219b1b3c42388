DEFAULT_RETRY_DELAY = 1.0     # seconds


class RetryStrategy:
    """ Determines how long to wait, in seconds, before the next attempt. """

    def __call__(self):
        return 0


class FixedDelayRetryStrategy(RetryStrategy):
    """
    Waits the same interval before every attempt, including the first.
    There is no backoff.
    """

    def __init__(self, delay=DEFAULT_RETRY_DELAY):
        """
        :param delay: The delay in seconds.
        """
        if delay < 0:
            raise ValueError("retry delay must not be negative: %s" % delay)
        self.delay = delay

    def __call__(self):
        return self.delay

    def __eq__(self, other):
        return isinstance(other, FixedDelayRetryStrategy) and other.delay == self.delay

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self.delay)

    def __repr__(self):
        return "FixedDelayRetryStrategy(%r)" % self.delay
