"""Unit tests for the drawer note form."""

from notebook.drawer.form import FormMode, NoteForm


class TestAddMode:
    def test_default_subject_alone_cannot_be_saved(self):
        form = NoteForm()
        form.reset("Note 3")

        assert form.mode is FormMode.ADD
        assert form.subject == "Note 3"
        assert form.save_enabled is False

    def test_subject_and_body_enable_save(self):
        form = NoteForm()
        form.reset("Note 1")
        form.set_body("<p>Remember the quiz</p>")

        assert form.save_enabled is True

    def test_markup_only_body_blocks_save(self):
        form = NoteForm()
        form.reset("Note 1")
        form.set_body("<p>  </p>")

        assert form.save_enabled is False

    def test_image_body_enables_save(self):
        form = NoteForm()
        form.reset("Note 1")
        form.set_body('<p><img src="diagram.png" alt=""></p>')

        assert form.save_enabled is True

    def test_blank_subject_blocks_save(self):
        form = NoteForm()
        form.reset("Note 1")
        form.set_body("<p>x</p>")
        form.set_subject("   ")

        assert form.save_enabled is False


class TestEditMode:
    def test_unchanged_content_blocks_save(self):
        form = NoteForm()
        form.prefill(7, "Subject", "<p>Body</p>")

        assert form.mode is FormMode.EDIT
        assert form.note_id == 7
        assert form.save_enabled is False

    def test_changed_body_enables_save(self):
        form = NoteForm()
        form.prefill(7, "Subject", "<p>Body</p>")
        form.set_body("<p>Body, revised</p>")

        assert form.save_enabled is True

    def test_reverting_change_blocks_save_again(self):
        form = NoteForm()
        form.prefill(7, "Subject", "<p>Body</p>")
        form.set_subject("Other")
        form.set_subject("Subject")

        assert form.save_enabled is False
