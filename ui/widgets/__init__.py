from ui.widgets.phrase_input import PhraseInput
from ui.widgets.phrase_view import PhraseView
from ui.widgets.session_dialog import SessionDialog

__all__ = ["PhraseInput", "PhraseView", "SessionDialog"]
