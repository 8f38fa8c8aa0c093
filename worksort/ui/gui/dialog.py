"""Qt dialog for resolving the unresolved pool.

Requires PySide6 to be installed: pip install PySide6

This module uses lazy imports to avoid failing if PySide6 is not installed.
PySide6 is imported only when the dialog is actually shown.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

from worksort.core.models import Disposition
from worksort.ui.resolution import ResolutionAdapter

if TYPE_CHECKING:
    from worksort.ui.resolution import UnresolvedPool


def load_qt_widgets() -> Any:
    """Import the PySide6 widgets module.

    Raises:
        ImportError: If PySide6 is not installed
    """
    try:
        from PySide6 import QtWidgets
    except ImportError as exc:
        raise ImportError("PySide6 is not installed. Install with: pip install PySide6") from exc
    return QtWidgets


class QtResolutionAdapter(ResolutionAdapter):
    """Resolution adapter showing a modal Qt dialog.

    The dialog lists the distinct family/type labels of the pool and lets
    the operator pick a bucket for all of them, or ignore them. Closing the
    dialog counts as ignoring.
    """

    def __init__(self, label_limit: int = 25, parent: object | None = None) -> None:
        self.label_limit = label_limit
        self.parent = parent

    def present_unresolved(self, pool: UnresolvedPool) -> Disposition:
        """Show the dialog and return the operator's decision.

        Raises:
            ImportError: If PySide6 is not installed
        """
        if not pool.count:
            return Disposition.ignore()

        qt = load_qt_widgets()
        _app = qt.QApplication.instance() or qt.QApplication(sys.argv)

        labels, total = pool.labels(self.label_limit)

        dialog = qt.QDialog(self.parent)
        dialog.setWindowTitle("Unresolved elements")
        dialog.setMinimumSize(480, 420)
        layout = qt.QVBoxLayout(dialog)

        layout.addWidget(qt.QLabel(f"Skipped (unmapped/unchanged): {pool.count}"))
        layout.addWidget(qt.QLabel(f"Distinct family/type names: {total}"))

        names = qt.QListWidget()
        names.addItems(labels)
        if total > len(labels):
            names.addItem("...")
        layout.addWidget(names)

        layout.addWidget(qt.QLabel("Assign all skipped to bucket:"))
        combo = qt.QComboBox()
        combo.addItems(pool.bucket_names)
        layout.addWidget(combo)

        btn_layout = qt.QHBoxLayout()
        assign_btn = qt.QPushButton("Assign all")
        assign_btn.setEnabled(bool(pool.bucket_names))
        assign_btn.clicked.connect(dialog.accept)
        ignore_btn = qt.QPushButton("Ignore")
        ignore_btn.clicked.connect(dialog.reject)
        btn_layout.addWidget(assign_btn)
        btn_layout.addWidget(ignore_btn)
        layout.addLayout(btn_layout)

        if not dialog.exec():
            return Disposition.ignore()

        bucket_name = combo.currentText()
        if not bucket_name:
            return Disposition.ignore()
        return Disposition.assign_all(bucket_name)
