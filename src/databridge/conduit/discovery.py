"""
    Resource discovery for serial devices and network paths.
    A discovery enumerates the resources of one kind currently present on the host,
    filters them for eligibility and offers the first eligible one. There is no ranking:
    the first in enumeration order wins, so selection is reproducible.
"""

import logging

logger = logging.getLogger(__name__)


class ResourceDiscovery:
    """ Enumerates resources and selects those that are eligible. """

    def _fetch_available(self):
        """ Template method for subclasses to enumerate the resources
            currently present, in platform enumeration order.
        :return: an iterable of resources
        """
        return ()

    def _is_allowed(self, resource):
        """
        Template method to allow subclasses to exclude resources
        that are present but not eligible.
        """
        return True

    def available(self):
        """ :return: a list of the eligible resources, in enumeration order. """
        return [r for r in self._fetch_available() if self._is_allowed(r)]

    def first(self):
        """ :return: the first eligible resource, or None if there is none. """
        for resource in self._fetch_available():
            if self._is_allowed(resource):
                logger.debug("selected %s", resource)
                return resource
        return None
