"""
An immutable registry of type adapters.
"""

import attr

from pyrsistent import pmap, pvector


@attr.s(frozen=True)
class TypeAdapterRegistry(object):
    """
    Maps value types to :class:`cumulus.codec.adapters.TypeAdapter` objects.

    Exact bindings apply to one type only.  Hierarchy bindings apply to a type
    and all its subclasses; when several match, the most recently registered
    one wins.  Exact bindings are always consulted first.

    Registering never mutates a registry; a new one is returned.

    :ivar exact: ``PMap`` of type to adapter.
    :ivar hierarchy: ``PVector`` of (type, adapter), oldest first.
    """
    exact = attr.ib(default=pmap())
    hierarchy = attr.ib(default=pvector())

    def register(self, type_, adapter):
        """
        :return: a new registry with ``adapter`` bound to exactly ``type_``,
            replacing any previous exact binding.
        """
        return attr.evolve(self, exact=self.exact.set(type_, adapter))

    def register_hierarchy(self, type_, adapter):
        """
        :return: a new registry with ``adapter`` bound to ``type_`` and its
            subclasses, replacing any previous hierarchy binding of ``type_``.
        """
        remaining = [(t, a) for t, a in self.hierarchy if t is not type_]
        return attr.evolve(
            self, hierarchy=pvector(remaining).append((type_, adapter)))

    def register_all(self, bindings):
        """
        :param bindings: a mapping of type to adapter.
        :return: a new registry with every binding registered exactly.
        """
        return attr.evolve(self, exact=self.exact.update(bindings))

    def adapter_for(self, type_):
        """
        :return: the adapter for ``type_`` or ``None`` if nothing is bound.
        """
        adapter = self.exact.get(type_)
        if adapter is not None:
            return adapter
        if not isinstance(type_, type):
            return None
        for bound_type, adapter in reversed(self.hierarchy):
            if issubclass(type_, bound_type):
                return adapter.for_type(type_)
        return None
