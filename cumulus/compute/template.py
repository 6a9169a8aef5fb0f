"""
Choosing an image and hardware profile from what a provider offers.
"""

import re

import attr

from cumulus.compute.model import Template


class NoSuchElementError(LookupError):
    """
    Raised by :meth:`TemplateBuilder.build` when no image or no hardware
    satisfies the criteria.
    """


@attr.s(frozen=True)
class TemplateBuilder(object):
    """
    Criteria for a :class:`~cumulus.compute.model.Template`.  Immutable: each
    method returns a new builder with one more criterion.

    >>> (TemplateBuilder().os_family(OsFamily.UBUNTU).min_ram(1024)
    ...  .build(images, hardware))
    """
    _os_family = attr.ib(default=None)
    _os_description = attr.ib(default=None)
    _image_id = attr.ib(default=None)
    _hardware_id = attr.ib(default=None)
    _min_ram = attr.ib(default=0)
    _biggest = attr.ib(default=False)

    def os_family(self, family):
        """Only images of this :class:`OsFamily`."""
        return attr.evolve(self, os_family=family)

    def os_description_matches(self, pattern):
        """Only images whose OS description matches this regex."""
        return attr.evolve(self, os_description=pattern)

    def image_id(self, image_id):
        """Exactly this image."""
        return attr.evolve(self, image_id=image_id)

    def hardware_id(self, hardware_id):
        """Exactly this hardware profile."""
        return attr.evolve(self, hardware_id=hardware_id)

    def min_ram(self, megabytes):
        """Only hardware with at least this much RAM."""
        return attr.evolve(self, min_ram=megabytes)

    def smallest(self):
        """The least RAM (then disk) among the matching hardware."""
        return attr.evolve(self, biggest=False)

    def biggest(self):
        """The most RAM (then disk) among the matching hardware."""
        return attr.evolve(self, biggest=True)

    def _image_matches(self, image):
        if self._image_id is not None and str(image.id) != str(self._image_id):
            return False
        if self._os_family is not None and image.os.family != self._os_family:
            return False
        if self._os_description is not None and not re.search(
                self._os_description, image.os.description or ''):
            return False
        return True

    def _hardware_matches(self, hardware):
        if (self._hardware_id is not None and
                str(hardware.id) != str(self._hardware_id)):
            return False
        return (hardware.ram or 0) >= self._min_ram

    def build(self, images, hardware):
        """
        Pick the first matching image and the smallest (or biggest) matching
        hardware.

        :param images: :class:`~cumulus.compute.model.ImageSpec` on offer.
        :param hardware: :class:`~cumulus.compute.model.Hardware` on offer.
        :raise NoSuchElementError: if nothing matches.
        :return: a :class:`~cumulus.compute.model.Template`.
        """
        matching_images = [i for i in images if self._image_matches(i)]
        if not matching_images:
            raise NoSuchElementError(
                'no image matched {0!r} among {1}'.format(
                    self, [i.id for i in images]))

        matching_hardware = sorted(
            (h for h in hardware if self._hardware_matches(h)),
            key=lambda h: (h.ram or 0, h.disk or 0))
        if not matching_hardware:
            raise NoSuchElementError(
                'no hardware matched {0!r} among {1}'.format(
                    self, [h.id for h in hardware]))

        chosen = matching_hardware[-1 if self._biggest else 0]
        return Template(image=matching_images[0], hardware=chosen)
