# requests_core/workflows/guards.py

from django.core.exceptions import PermissionDenied
from django.db import models


class WorkflowWriteGuardMixin(models.Model):
    """
    Prevent direct modification of workflow-controlled fields outside the workflow engine.

    Models inheriting this mixin must change WORKFLOW_FIELDS via the status
    executor or the deadline service. Direct .save() changes are blocked.

    Escape hatch:
      - pass _workflow_bypass=True to save(), OR
      - set instance._workflow_bypass = True
    Use sparingly (tests, data fixes, admin repair scripts).
    """

    WORKFLOW_FIELDS = ("status",)
    WORKFLOW_BYPASS_KWARG = "_workflow_bypass"

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        bypass = bool(
            kwargs.pop(self.WORKFLOW_BYPASS_KWARG, False)
            or getattr(self, "_workflow_bypass", False)
        )

        if not bypass and self.pk is not None and self.WORKFLOW_FIELDS:
            old = (
                self.__class__.objects.filter(pk=self.pk)
                .values(*self.WORKFLOW_FIELDS)
                .first()
            )
            if old is not None:
                changed = [
                    f for f in self.WORKFLOW_FIELDS
                    if old[f] != getattr(self, f, None)
                ]
                if changed:
                    raise PermissionDenied(
                        f"Direct modification of {', '.join(repr(f) for f in changed)} "
                        "is forbidden. Use workflow APIs."
                    )

        return super().save(*args, **kwargs)


class AppendOnlyMixin(models.Model):
    """
    Audit rows are written once. Updates and deletes raise PermissionDenied.
    """

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and self.__class__.objects.filter(pk=self.pk).exists():
            raise PermissionDenied(
                f"{self.__class__.__name__} entries are immutable."
            )
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionDenied(
            f"{self.__class__.__name__} entries cannot be deleted."
        )


class AppendOnlyQuerySet(models.QuerySet):
    """
    Bulk counterpart of AppendOnlyMixin: queryset update() and delete() raise.

    Cascades from a deleted parent go through the base manager and are not
    affected.
    """

    def update(self, **kwargs):
        raise PermissionDenied(f"{self.model.__name__} entries are immutable.")

    def delete(self):
        raise PermissionDenied(f"{self.model.__name__} entries cannot be deleted.")
