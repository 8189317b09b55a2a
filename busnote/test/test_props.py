
import unittest

from ..props import String, Number, Unknown, Array, DictEntry, Message, SIGNAL

class TestProps(unittest.TestCase):
    def test_eq(self):
        self.assertEqual(String('a'), String('a'))
        self.assertNotEqual(String('a'), Unknown('a'))
        self.assertNotEqual(Number(1), String('1'))
        self.assertEqual(Number(float('nan')), Number(float('nan')))
        self.assertNotEqual(Number(float('nan')), Number(1))
        self.assertEqual(Array([Number(1)]), Array([Number(1)]))
        self.assertNotEqual(Array([Number(1)]), Array([Number(1), Number(2)]))
        self.assertEqual(DictEntry('k', String('v')), DictEntry('k', String('v')))
        self.assertNotEqual(DictEntry('k', String('v')), DictEntry('j', String('v')))

    def test_defaults(self):
        E = DictEntry()
        self.assertEqual(E.key, '')
        self.assertEqual(E.value, Unknown(''))
        A = Array()
        self.assertEqual(len(A), 0)
        A.append(String('x'))
        self.assertEqual(list(A), [String('x')])
        self.assertEqual(A[0], String('x'))

    def test_repr(self):
        self.assertEqual(repr(DictEntry('k', Number(1))), "DictEntry('k', Number(1))")
        self.assertEqual(repr(Array([String('a')])), "Array([String('a')])")

    def test_message(self):
        M = Message.build(member='Notify', serial=3)
        self.assertEqual(M.type, SIGNAL)
        self.assertEqual(M.member, 'Notify')
        self.assertEqual(M.properties, [])
        self.assertEqual(M, Message.build(member='Notify', serial=3))
        self.assertNotEqual(M, Message.build(member='Notify', serial=4))
        self.assertNotEqual(M, Message.build(member='Notify', serial=3, properties=[String('x')]))
        self.assertRegex(repr(M), "member='Notify'")
        self.assertRaises(TypeError, Message.build, bogus=1)
