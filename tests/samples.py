from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]

GNU_OBJDUMP = """\
/tmp/a.out:     file format elf64-littleaarch64


Disassembly of section .text:

0000000000400540 <main>:
  400540:\td10043ff \tsub\tsp, sp, #0x10
  400544:\teb01001f \tcmp\tx0, x1
  400548:\t54000040 \tb.eq\t400550 <main+0x10>  // b.none
  40054c:\t90000080 \tadrp\tx0, 410000 <__FRAME_END__+0xf9d4>
  400550:\t91004000 \tadd\tx0, x0, #0x10
  400554:\td65f03c0 \tret

0000000000400558 <helper>:
  400558:\t52800000 \tmov\tw0, #0x0
  40055c:\td65f03c0 \tret
"""

LLVM_OBJDUMP = """\
a.out:\tfile format mach-o arm64

Disassembly of section __TEXT,__text:

0000000100003f40 <_main>:
100003f40: ff 43 00 d1  \tsub\tsp, sp, #16
100003f44: 1f 00 01 eb  \tcmp\tx0, x1
100003f48: 40 00 00 54  \tb.ne\t0x100003f50 <_main+0x10>
100003f4c: 00 04 00 91  \tadd\tx0, x0, #1
100003f50: ff 43 00 91  \tadd\tsp, sp, #16
100003f54: c0 03 5f d6  \tret
"""

OTOOL = """\
/tmp/a.out:
(__TEXT,__text) section
_main:
0000000100003f40\tsubs\tx8, x0, #0x1
0000000100003f44\tb.lt\t0x100003f50
0000000100003f48\taese\tv0.16b, v1.16b
0000000100003f4c\taesmc\tv0.16b, v0.16b
0000000100003f50\tret
"""


def disasm(*functions):
    """
    Build objdump-style text from (name, [instruction text, ...]) pairs.

    Addresses are assigned sequentially, four bytes apart.
    """
    lines = []
    address = 0x1000
    for name, body in functions:
        lines.append(f"{address:016x} <{name}>:")
        for text in body:
            lines.append(f"  {address:x}:\t{text}")
            address += 4
        lines.append("")
    return "\n".join(lines)


def bare(*instructions):
    """Instruction lines with no function header at all"""
    return "\n".join(f"  {0x2000 + 4 * i:x}:\t{text}" for i, text in enumerate(instructions))
