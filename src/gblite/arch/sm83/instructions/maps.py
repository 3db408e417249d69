"""
SM83 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと実行関数の対応表を構築します。
CB命令は 0xCB00 | n をキーとします。
"""
from .load import (
    execute_ld_rr_d16, execute_ld_indirect_a, execute_ld_a_indirect, execute_ld_r_d8,
    execute_ld_r_r, execute_ld_a16_sp, execute_ld_a16_a, execute_ld_a_a16,
    execute_ldh_store, execute_ldh_load, execute_ld_hl_sp_e, execute_ld_sp_hl,
    execute_push, execute_pop
)
from .alu import (
    execute_alu_r, execute_alu_d8, execute_inc_dec8, execute_inc_dec16, execute_add_hl_rr,
    execute_add_sp_e, execute_daa, execute_cpl, execute_scf, execute_ccf, execute_rotate_a
)
from .control import (
    execute_nop, execute_halt, execute_stop, execute_jr, execute_jr_cc, execute_jp,
    execute_jp_cc, execute_jp_hl, execute_call, execute_call_cc, execute_ret, execute_ret_cc,
    execute_reti, execute_rst, execute_di, execute_ei
)
from .cb import execute_cb_shift, execute_cb_bit, execute_cb_res, execute_cb_set

EXECUTE_MAP = {
    0x00: execute_nop,
    0x08: execute_ld_a16_sp,
    0x10: execute_stop,
    0x18: execute_jr,
    0x27: execute_daa,
    0x2F: execute_cpl,
    0x37: execute_scf,
    0x3F: execute_ccf,
    0x76: execute_halt,
    0xC3: execute_jp,
    0xC9: execute_ret,
    0xCD: execute_call,
    0xD9: execute_reti,
    0xE0: execute_ldh_store,
    0xE2: execute_ldh_store,
    0xE8: execute_add_sp_e,
    0xE9: execute_jp_hl,
    0xEA: execute_ld_a16_a,
    0xF0: execute_ldh_load,
    0xF2: execute_ldh_load,
    0xF3: execute_di,
    0xF8: execute_ld_hl_sp_e,
    0xF9: execute_ld_sp_hl,
    0xFA: execute_ld_a_a16,
    0xFB: execute_ei,
    **{op: execute_ld_rr_d16 for op in range(0x01, 0x40, 0x10)}, # LD BC/DE/HL/SP,d16
    **{op: execute_ld_indirect_a for op in range(0x02, 0x40, 0x10)}, # LD (BC)/(DE)/(HL+)/(HL-),A
    **{op: execute_ld_a_indirect for op in range(0x0A, 0x40, 0x10)}, # LD A,(BC)/(DE)/(HL+)/(HL-)
    **{op: execute_inc_dec16 for op in range(0x03, 0x40, 0x10)}, # INC rr
    **{op: execute_inc_dec16 for op in range(0x0B, 0x40, 0x10)}, # DEC rr
    **{op: execute_add_hl_rr for op in range(0x09, 0x40, 0x10)}, # ADD HL,rr
    **{op: execute_inc_dec8 for op in range(0x04, 0x40, 0x08)}, # INC r
    **{op: execute_inc_dec8 for op in range(0x05, 0x40, 0x08)}, # DEC r
    **{op: execute_ld_r_d8 for op in range(0x06, 0x40, 0x08)}, # LD r,d8
    **{op: execute_rotate_a for op in range(0x07, 0x20, 0x08)}, # RLCA, RRCA, RLA, RRA
    **{op: execute_jr_cc for op in range(0x20, 0x40, 0x08)}, # JR cc,r8
    **{op: execute_ld_r_r for op in range(0x40, 0x80) if op != 0x76},
    **{op: execute_alu_r for op in range(0x80, 0xC0)},
    **{op: execute_ret_cc for op in range(0xC0, 0xE0, 0x08)}, # RET cc
    **{op: execute_pop for op in range(0xC1, 0x100, 0x10)}, # POP qq
    **{op: execute_jp_cc for op in range(0xC2, 0xE0, 0x08)}, # JP cc,a16
    **{op: execute_call_cc for op in range(0xC4, 0xE0, 0x08)}, # CALL cc,a16
    **{op: execute_push for op in range(0xC5, 0x100, 0x10)}, # PUSH qq
    **{op: execute_alu_d8 for op in range(0xC6, 0x100, 0x08)}, # ALU A,d8
    **{op: execute_rst for op in range(0xC7, 0x100, 0x08)}, # RST n
    # CB prefix
    **{(0xCB00 | op): execute_cb_shift for op in range(0x00, 0x40)},
    **{(0xCB00 | op): execute_cb_bit for op in range(0x40, 0x80)},
    **{(0xCB00 | op): execute_cb_res for op in range(0x80, 0xC0)},
    **{(0xCB00 | op): execute_cb_set for op in range(0xC0, 0x100)},
}

# @intent:constant 各実行関数が読み取るオペランドに対応する命令長（プレフィックス込み）。
#                  記載のないオペコードは1バイト命令です。
LENGTH_MAP = {
    **{op: 1 for op in EXECUTE_MAP},
    0x08: 3, # LD (a16),SP
    0x10: 2, # STOP
    0x18: 2, # JR r8
    0xC3: 3, # JP a16
    0xCD: 3, # CALL a16
    0xE0: 2, # LDH (a8),A
    0xE8: 2, # ADD SP,r8
    0xEA: 3, # LD (a16),A
    0xF0: 2, # LDH A,(a8)
    0xF8: 2, # LD HL,SP+r8
    0xFA: 3, # LD A,(a16)
    **{op: 3 for op in range(0x01, 0x40, 0x10)}, # LD rr,d16
    **{op: 2 for op in range(0x06, 0x40, 0x08)}, # LD r,d8
    **{op: 2 for op in range(0x20, 0x40, 0x08)}, # JR cc,r8
    **{op: 3 for op in range(0xC2, 0xE0, 0x08)}, # JP cc,a16
    **{op: 3 for op in range(0xC4, 0xE0, 0x08)}, # CALL cc,a16
    **{op: 2 for op in range(0xC6, 0x100, 0x08)}, # ALU A,d8
    **{(0xCB00 | op): 2 for op in range(0x100)},
}
