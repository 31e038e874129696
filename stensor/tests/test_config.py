"""
Tests for stensor options and logging setup.
"""

import logging
import unittest

import stensor as st


class TestOptions(unittest.TestCase):

    def test_defaults(self):
        opts = st.get_options()
        self.assertEqual(opts.default_dtype, "float32")
        self.assertEqual(opts.repr_precision, 4)
        self.assertEqual(opts.repr_threshold, 1000)

    def test_context_manager_restores(self):
        with st.options(repr_precision=2) as opts:
            self.assertEqual(opts.repr_precision, 2)
            self.assertEqual(st.get_options().repr_precision, 2)
        self.assertEqual(st.get_options().repr_precision, 4)

    def test_set_options_returns_previous(self):
        previous = st.set_options(repr_threshold=10)
        try:
            self.assertEqual(previous.repr_threshold, 1000)
            self.assertEqual(st.get_options().repr_threshold, 10)
        finally:
            st.set_options(repr_threshold=previous.repr_threshold)

    def test_unknown_option(self):
        with self.assertRaises(TypeError):
            st.set_options(colour="red")

    def test_integer_default_dtype_rejected(self):
        with self.assertRaises(TypeError):
            st.set_options(default_dtype="int32")
        self.assertEqual(st.get_options().default_dtype, "float32")


class TestLogging(unittest.TestCase):

    def test_setup_logging_is_idempotent(self):
        logger = logging.getLogger("stensor")
        level = logger.level
        before = list(logger.handlers)

        def restore():
            for handler in logger.handlers[:]:
                if handler not in before:
                    logger.removeHandler(handler)
            logger.setLevel(level)

        self.addCleanup(restore)
        st.setup_logging(logging.DEBUG)
        configured = st.setup_logging(logging.DEBUG)
        self.assertIs(configured, logger)
        self.assertEqual(logger.level, logging.DEBUG)
        added = [h for h in logger.handlers if h not in before]
        self.assertEqual(len(added), 1)


if __name__ == '__main__':
    unittest.main()
